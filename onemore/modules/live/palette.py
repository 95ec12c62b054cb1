"""Participant card colors and default participant names.

Color indices are stored on participants.color_index, so the order of
PARTICIPANT_COLORS must never change; new colors go at the end.
"""

PARTICIPANT_COLORS = [
    "#007AFF",  # blue
    "#AF52DE",  # purple
    "#FF2D55",  # hot pink
    "#FF9500",  # orange
    "#FFCC00",  # amber
    "#FFD700",  # yellow
    "#32CD32",  # lime
    "#00CED1",  # teal
    "#D2691E",  # brown
    "#708090",  # slate
    "#000080",  # navy
    "#FF1493",  # deep pink
]

NAME_POOL = [
    "Panda",
    "Mariposa",
    "Tigre",
    "Caballo",
    "Leopardo",
    "Lémur",
    "Elefante",
    "Jirafa",
    "León",
    "Oso",
    "Lobo",
    "Zorro",
    "Conejo",
    "Ardilla",
    "Delfín",
    "Ballena",
    "Tiburón",
    "Águila",
    "Búho",
    "Colibrí",
]


def color_for(color_index: int) -> str:
    return PARTICIPANT_COLORS[color_index % len(PARTICIPANT_COLORS)]
