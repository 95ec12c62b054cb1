"""
Reconciliation rules for optimistic (tentative) drink events and participants.

Every function here is pure: it takes the current local state plus the
authoritative rows and returns new state. LiveSession owns the state and
decides when to call them.

Matching is heuristic. Drink events carry no client-generated key, so a
tentative event is paired with an authoritative one by
(participant, drink type, delta) and creation time within a window;
participants are paired by display name and creation time.
"""
import time
import uuid
from datetime import datetime
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Set, Tuple

from onemore.modules.drink_events.schemas import DrinkEvent
from onemore.modules.participants.schemas import Participant

TENTATIVE_PREFIX = "temp-"


def is_tentative(entity_id: str) -> bool:
    return entity_id.startswith(TENTATIVE_PREFIX)


def new_tentative_id() -> str:
    """Unique even for several calls within the same millisecond"""
    return f"{TENTATIVE_PREFIX}{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def seconds_apart(a: datetime, b: datetime) -> float:
    return abs((a - b).total_seconds())


# Drink events

def events_match(tentative: DrinkEvent, authoritative: DrinkEvent, window_seconds: float) -> bool:
    return (
        tentative.target_participant_id == authoritative.target_participant_id
        and tentative.drink_type_id == authoritative.drink_type_id
        and tentative.delta == authoritative.delta
        and seconds_apart(tentative.created_at, authoritative.created_at) <= window_seconds
    )


class EventMerge(NamedTuple):
    events: List[DrinkEvent]
    replaced_id: Optional[str]  # tentative id that the incoming event replaced
    is_new: bool  # False when the incoming id was already present


def apply_authoritative_event(
    events: Sequence[DrinkEvent],
    incoming: DrinkEvent,
    window_seconds: float
) -> EventMerge:
    """Merge one event from the change feed into the local list.

    The first matching tentative event is replaced in place. Without a match
    the event came from elsewhere and is appended. Ids already present are ignored.
    """
    if any(e.id == incoming.id for e in events):
        return EventMerge(list(events), None, False)

    for index, event in enumerate(events):
        if is_tentative(event.id) and events_match(event, incoming, window_seconds):
            merged = list(events)
            merged[index] = incoming
            return EventMerge(merged, event.id, True)

    return EventMerge([*events, incoming], None, True)


def rollback_event(events: Sequence[DrinkEvent], tentative_id: str) -> List[DrinkEvent]:
    return [e for e in events if e.id != tentative_id]


def reconcile_reloaded_events(
    local_events: Sequence[DrinkEvent],
    authoritative_events: Sequence[DrinkEvent],
    window_seconds: float,
    droppable: Set[str] = frozenset(),
    keep_ids: Set[str] = frozenset()
) -> Tuple[List[DrinkEvent], Set[str]]:
    """Replace the local ledger with a fresh snapshot, carrying tentative events over.

    A tentative event is resolved when an authoritative event not seen locally
    before matches it. Unresolved tentative events are kept unless listed in
    ``droppable`` (their write finished before the snapshot was taken, so
    their row is already accounted for). Authoritative events missing from the
    snapshot survive only when listed in ``keep_ids`` (applied from the change
    feed after the snapshot was requested). Returns the new list and the ids
    of tentative events that left it.
    """
    known_ids = {e.id for e in local_events if not is_tentative(e.id)}
    fresh = [e for e in authoritative_events if e.id not in known_ids]
    used: Set[str] = set()
    snapshot_ids = {e.id for e in authoritative_events}
    merged = list(authoritative_events)
    merged.extend(
        e for e in local_events
        if e.id in keep_ids and e.id not in snapshot_ids and not is_tentative(e.id)
    )
    gone: Set[str] = set()

    for tentative in local_events:
        if not is_tentative(tentative.id):
            continue
        match = next(
            (e for e in fresh if e.id not in used and events_match(tentative, e, window_seconds)),
            None
        )
        if match is not None:
            used.add(match.id)
            gone.add(tentative.id)
        elif tentative.id in droppable:
            gone.add(tentative.id)
        else:
            merged.append(tentative)
    return merged, gone


# Participants

def next_participant_name(existing_names: Sequence[str], pool: Sequence[str]) -> str:
    """Pool name picked by participant count; numeric suffix while the name is taken"""
    base = pool[len(existing_names) % len(pool)]
    taken = set(existing_names)
    candidate = base
    counter = 1
    while candidate in taken:
        candidate = f"{base} {counter}"
        counter += 1
    return candidate


def sort_by_creation(participants: Iterable[Participant]) -> List[Participant]:
    return sorted(participants, key=lambda p: p.created_at)


def creation_position(participants: Iterable[Participant], participant_id: str) -> int:
    """Index of a participant when everyone is ordered by creation time"""
    for index, p in enumerate(sort_by_creation(participants)):
        if p.id == participant_id:
            return index
    raise KeyError(participant_id)


def match_tentative_participants(
    local_participants: Sequence[Participant],
    authoritative: Sequence[Participant],
    colors: Dict[str, int],
    window_seconds: float
) -> Dict[str, str]:
    """Map tentative participant ids to the real rows they became.

    Candidates share the display name and were created within the window;
    the closest in time wins, preferring rows that have no color yet. A real
    row is bound to at most one tentative participant.
    """
    mapping: Dict[str, str] = {}
    taken: Set[str] = set()
    for tentative in local_participants:
        if not is_tentative(tentative.id):
            continue
        candidates = sorted(
            (
                p for p in authoritative
                if p.id not in taken
                and p.display_name == tentative.display_name
                and seconds_apart(p.created_at, tentative.created_at) <= window_seconds
            ),
            key=lambda p: seconds_apart(p.created_at, tentative.created_at)
        )
        if not candidates:
            continue
        best = next((p for p in candidates if p.id not in colors), candidates[0])
        mapping[tentative.id] = best.id
        taken.add(best.id)
    return mapping


def transfer_colors(colors: Dict[str, int], mapping: Dict[str, str]) -> Dict[str, int]:
    """Colors of reconciled tentative ids, keyed by the real id"""
    return {real_id: colors[temp_id] for temp_id, real_id in mapping.items() if temp_id in colors}


def assign_colors(
    participants: Iterable[Participant],
    colors: Dict[str, int],
    transferred: Optional[Dict[str, int]] = None,
    keep_ids: Iterable[str] = ()
) -> Dict[str, int]:
    """Build the color table for an authoritative participant list.

    Priority per participant: persisted color_index, color transferred from
    its tentative id, the color it already had, its creation-order position.
    Ids listed in ``keep_ids`` (still-tentative participants) keep their entry.
    Entries for participants that no longer exist are dropped, which never
    changes anyone else's color.
    """
    transferred = transferred or {}
    assigned: Dict[str, int] = {}
    for position, p in enumerate(sort_by_creation(participants)):
        if p.color_index is not None:
            assigned[p.id] = p.color_index
        elif p.id in transferred:
            assigned[p.id] = transferred[p.id]
        elif p.id in colors:
            assigned[p.id] = colors[p.id]
        else:
            assigned[p.id] = position
    for tentative_id in keep_ids:
        if tentative_id in colors:
            assigned[tentative_id] = colors[tentative_id]
    return assigned
