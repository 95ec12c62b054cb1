"""Supabase realtime (postgres_changes) subscriptions for one session."""
import logging
from dataclasses import dataclass
from supabase import AsyncClient
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


@dataclass
class ChangeEvent:
    table: str
    type: str
    record: Optional[Dict[str, Any]] = None
    old_record: Optional[Dict[str, Any]] = None

    @classmethod
    def from_payload(cls, table: str, payload: Dict[str, Any]) -> "ChangeEvent":
        """Normalise both the realtime-py shape ({"data": {"type", "record", ...}})
        and the JS-style shape ({"eventType", "new", "old"})."""
        data = payload.get("data") or payload
        return cls(
            table=data.get("table") or table,
            type=(data.get("type") or data.get("eventType") or "").upper(),
            record=data.get("record") or data.get("new") or None,
            old_record=data.get("old_record") or data.get("old") or None,
        )


ChangeCallback = Callable[[ChangeEvent], None]


class RealtimeFeed:
    """One channel per table, filtered to a session. Callbacks run on the event loop."""

    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase
        self._channels: List[Any] = []

    async def subscribe(self, table: str, session_id: str, callback: ChangeCallback) -> None:
        def on_change(payload: Dict[str, Any]) -> None:
            callback(ChangeEvent.from_payload(table, payload))

        channel = self.supabase.channel(f"{table}:{session_id}")
        channel.on_postgres_changes(
            "*",
            schema="public",
            table=table,
            filter=f"session_id=eq.{session_id}",
            callback=on_change,
        )
        await channel.subscribe()
        self._channels.append(channel)
        logger.debug(f"Subscribed to {table} changes for session {session_id}")

    async def unsubscribe_all(self) -> None:
        channels, self._channels = self._channels, []
        for channel in channels:
            try:
                await self.supabase.remove_channel(channel)
            except Exception as e:
                logger.warning(f"Error removing realtime channel: {e}")
