"""
Live view of one session with optimistic updates.

Local changes (drink +1/-1, new participant) show up immediately as tentative
entities and are written to Supabase in background tasks that the caller
never awaits. Authoritative rows come back through the realtime feed or a
reload and replace the tentative ones (see reconcile.py). A failed write rolls
its tentative entity back and is reported through ``on_error``; nothing is
retried.

All state lives on the LiveSession and is only touched from the event loop.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Set, Tuple

from pydantic import ValidationError

from onemore.config.settings import Settings, settings as default_settings
from onemore.core.exceptions import (
    InvalidOperationError, PermissionDeniedError, is_duplicate_key_error
)
from onemore.modules.auth.service import AuthService
from onemore.modules.balances.calculator import compute_balances
from onemore.modules.balances.schemas import BalanceRow
from onemore.modules.drink_events.schemas import DrinkEvent
from onemore.modules.drink_events.service import count_matrix, drink_count
from onemore.modules.drink_types.schemas import DrinkType
from onemore.modules.live import reconcile
from onemore.modules.live.palette import NAME_POOL, color_for
from onemore.modules.live.realtime import ChangeEvent, INSERT, RealtimeFeed
from onemore.modules.participants.schemas import Participant, ParticipantCreate
from onemore.modules.sessions.schemas import SessionData
from onemore.modules.sessions.service import SessionService

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[str, Exception], None]


@dataclass
class RecentActivity:
    count: int
    timestamp: float


class LiveSession:
    def __init__(
        self,
        session_id: str,
        user_id: str,
        service: SessionService,
        feed: RealtimeFeed,
        config: Optional[Settings] = None,
        on_error: Optional[ErrorCallback] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session_id = session_id
        self.user_id = user_id
        self.service = service
        self.feed = feed
        self.config = config or default_settings
        self.on_error = on_error
        self.clock = clock

        self.session_name = ""
        self.invite_code = ""
        self.is_owner = False
        self.current_participant_id: Optional[str] = None
        self.participants: List[Participant] = []
        self.drink_types: List[DrinkType] = []
        self.events: List[DrinkEvent] = []
        self.colors: Dict[str, int] = {}
        self.recent: Dict[str, RecentActivity] = {}

        # tentative id -> reload sequence number when its write settled (None while in flight)
        self._pending_events: Dict[str, Optional[int]] = {}
        self._pending_participants: Dict[str, Optional[int]] = {}
        # authoritative event id -> reload sequence number when the feed applied it
        self._feed_applied: Dict[str, int] = {}
        self._reload_seq = 0
        self._applied_seq = 0
        self._tasks: Set[asyncio.Task] = set()
        self._sweeper: Optional[asyncio.Task] = None
        self._closed = False

    @classmethod
    async def connect(cls, supabase, session_id: str, **kwargs) -> "LiveSession":
        """Authenticate (anonymously if needed), load the session and subscribe to changes"""
        user = await AuthService(supabase).ensure_authenticated()
        live = cls(session_id, user["id"], SessionService(supabase), RealtimeFeed(supabase), **kwargs)
        await live.start()
        return live

    # Lifecycle

    async def start(self) -> None:
        await self.reload()
        await self.feed.subscribe("participants", self.session_id, self._on_participants_change)
        await self.feed.subscribe("drink_types", self.session_id, self._on_drink_types_change)
        await self.feed.subscribe("drink_events", self.session_id, self._on_events_change)
        self._sweeper = asyncio.create_task(self._sweep_loop())
        logger.info(f"Live session {self.session_id} started for user {self.user_id}")

    async def close(self) -> None:
        """Stop timers, cancel in-flight work and drop subscriptions"""
        if self._closed:
            return
        self._closed = True
        pending = list(self._tasks)
        if self._sweeper is not None:
            pending.append(self._sweeper)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        await self.feed.unsubscribe_all()
        logger.info(f"Live session {self.session_id} closed")

    async def __aenter__(self) -> "LiveSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def drain(self) -> None:
        """Wait until every background write and reload has finished"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _notify(self, message: str, error: Exception) -> None:
        logger.warning(f"{message}: {error}")
        if self.on_error is not None:
            self.on_error(message, error)

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    # Derived state

    @property
    def has_pending(self) -> bool:
        return bool(self._pending_events or self._pending_participants)

    def count(self, participant_id: str, drink_type_id: Optional[str] = None) -> int:
        return drink_count(self.events, participant_id, drink_type_id)

    def counts(self) -> Dict[Tuple[str, str], int]:
        return count_matrix(self.events)

    def color_index(self, participant_id: str) -> int:
        if participant_id in self.colors:
            return self.colors[participant_id]
        return reconcile.creation_position(self.participants, participant_id)

    def color(self, participant_id: str) -> str:
        return color_for(self.color_index(participant_id))

    def balances(self) -> List[BalanceRow]:
        return compute_balances(self.participants, self.drink_types, self.events)

    # Recent activity markers

    def _mark_recent(self, participant_id: str) -> None:
        existing = self.recent.get(participant_id)
        self.recent[participant_id] = RecentActivity(
            count=existing.count + 1 if existing else 1,
            timestamp=self.clock(),
        )

    def sweep_recent(self) -> None:
        now = self.clock()
        ttl = self.config.recent_activity_ttl_seconds
        expired = [pid for pid, a in self.recent.items() if now - a.timestamp > ttl]
        for pid in expired:
            del self.recent[pid]

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.recent_activity_sweep_seconds)
            self.sweep_recent()

    # Drink events

    def add_drink(self, participant_id: str, drink_type_id: Optional[str] = None, delta: int = 1) -> DrinkEvent:
        """Record +1/-1 locally and write it in the background. Returns the tentative event."""
        if delta not in (1, -1):
            raise InvalidOperationError("delta must be 1 or -1")
        if not self.drink_types:
            raise InvalidOperationError("This session has no drink types")
        if drink_type_id is None:
            if len(self.drink_types) != 1:
                raise InvalidOperationError("Choose a drink type")
            drink_type_id = self.drink_types[0].id
        if reconcile.is_tentative(participant_id):
            raise InvalidOperationError("Participant is still being created")
        if not self.is_owner and self.current_participant_id is not None \
                and participant_id != self.current_participant_id:
            raise PermissionDeniedError("You can only change your own drinks")

        tentative = DrinkEvent(
            id=reconcile.new_tentative_id(),
            session_id=self.session_id,
            actor_user_id=self.user_id,
            target_participant_id=participant_id,
            drink_type_id=drink_type_id,
            delta=delta,
            created_at=self._now(),
        )
        self.events = [*self.events, tentative]
        self._pending_events[tentative.id] = None
        self._mark_recent(participant_id)
        self._spawn(self._write_event(tentative))
        return tentative

    def increment(self, participant_id: str, drink_type_id: Optional[str] = None) -> DrinkEvent:
        return self.add_drink(participant_id, drink_type_id, 1)

    def decrement(self, participant_id: str, drink_type_id: Optional[str] = None) -> DrinkEvent:
        return self.add_drink(participant_id, drink_type_id, -1)

    async def _write_event(self, tentative: DrinkEvent) -> None:
        try:
            await self.service.drink_events.add_drink_event(
                self.session_id,
                tentative.target_participant_id,
                tentative.drink_type_id,
                tentative.delta,
                self.user_id,
            )
        except Exception as e:
            self.events = reconcile.rollback_event(self.events, tentative.id)
            self._pending_events.pop(tentative.id, None)
            self._notify("Failed to add drink" if tentative.delta > 0 else "Failed to remove drink", e)
            return
        # The authoritative row arrives through the feed or the next reload
        if tentative.id in self._pending_events:
            self._pending_events[tentative.id] = self._reload_seq

    def apply_event_insert(self, incoming: DrinkEvent) -> None:
        merge = reconcile.apply_authoritative_event(
            self.events, incoming, self.config.event_match_window_seconds
        )
        if not merge.is_new:
            return
        self.events = merge.events
        self._feed_applied[incoming.id] = self._reload_seq
        if merge.replaced_id is not None:
            self._pending_events.pop(merge.replaced_id, None)
            logger.debug(f"Drink event {merge.replaced_id} confirmed as {incoming.id}")
        else:
            self._mark_recent(incoming.target_participant_id)

    # Participants

    def add_participant(self, display_name: Optional[str] = None) -> Participant:
        """Owner only. Adds a tentative participant and inserts it in the background."""
        if not self.is_owner:
            raise PermissionDeniedError("Only the session owner can add participants")

        name = (display_name or "").strip()
        if not name:
            name = reconcile.next_participant_name(
                [p.display_name for p in self.participants], NAME_POOL
            )
        tentative = Participant(
            id=reconcile.new_tentative_id(),
            session_id=self.session_id,
            display_name=name,
            created_at=self._now(),
        )
        color_index = reconcile.creation_position([*self.participants, tentative], tentative.id)
        tentative = tentative.model_copy(update={"color_index": color_index})

        self.colors[tentative.id] = color_index
        self.participants = [*self.participants, tentative]
        self._pending_participants[tentative.id] = None
        self._spawn(self._write_participant(tentative))
        return tentative

    async def _write_participant(self, tentative: Participant) -> None:
        try:
            await self.service.participants.add_participant_slot(
                self.session_id,
                ParticipantCreate(display_name=tentative.display_name, color_index=tentative.color_index),
            )
        except Exception as e:
            if is_duplicate_key_error(e):
                logger.info(f"Participant {tentative.display_name!r} already exists; resyncing")
                self._settle_participant(tentative.id)
                await self._reload_quietly()
                return
            self.participants = [p for p in self.participants if p.id != tentative.id]
            self.colors.pop(tentative.id, None)
            self._pending_participants.pop(tentative.id, None)
            self._notify("Failed to add participant", e)
            return

        self._settle_participant(tentative.id)
        await asyncio.sleep(self.config.participant_reload_delay_seconds)
        await self._reload_quietly()

    def _settle_participant(self, tentative_id: str) -> None:
        if tentative_id in self._pending_participants:
            self._pending_participants[tentative_id] = self._reload_seq

    # Reload

    async def reload(self) -> None:
        """Fetch the authoritative snapshot and reconcile local state against it"""
        self._reload_seq += 1
        seq = self._reload_seq
        data = await self.service.load_session_data(self.session_id, self.user_id)
        if seq < self._applied_seq:
            logger.debug(f"Discarding stale snapshot {seq} for session {self.session_id}")
            return
        self._applied_seq = seq
        self.apply_snapshot(data, seq)

    async def _reload_quietly(self) -> None:
        try:
            await self.reload()
        except Exception as e:
            logger.error(f"Failed to load session {self.session_id}: {e}")

    def apply_snapshot(self, data: SessionData, seq: Optional[int] = None) -> None:
        seq = self._reload_seq if seq is None else seq

        def droppable(pending: Dict[str, Optional[int]]) -> Set[str]:
            return {tid for tid, settled in pending.items() if settled is not None and settled < seq}

        # Participants: bind tentative ids to real rows and carry their colors over
        authoritative = reconcile.sort_by_creation(data.participants)
        mapping = reconcile.match_tentative_participants(
            self.participants, authoritative, self.colors,
            self.config.participant_match_window_seconds
        )
        transferred = reconcile.transfer_colors(self.colors, mapping)
        dropped = droppable(self._pending_participants)
        still_tentative = [
            p for p in self.participants
            if reconcile.is_tentative(p.id) and p.id not in mapping and p.id not in dropped
        ]
        for temp_id, real_id in mapping.items():
            logger.debug(f"Participant {temp_id} confirmed as {real_id}")
        for temp_id in dropped - set(mapping):
            logger.warning(f"Tentative participant {temp_id} has no server row; discarding")

        self.colors = reconcile.assign_colors(
            authoritative, self.colors, transferred, keep_ids=[p.id for p in still_tentative]
        )
        self.participants = [*authoritative, *still_tentative]
        self._pending_participants = {
            p.id: self._pending_participants.get(p.id) for p in still_tentative
        }

        # Events: swap in the ledger, keeping writes that have not shown up yet
        # and feed rows applied after this snapshot was requested
        self._feed_applied = {eid: s for eid, s in self._feed_applied.items() if s >= seq}
        self.events, gone = reconcile.reconcile_reloaded_events(
            self.events, data.events,
            self.config.event_match_window_seconds,
            droppable(self._pending_events),
            keep_ids=set(self._feed_applied)
        )
        for tid in gone:
            self._pending_events.pop(tid, None)

        self.drink_types = sorted(data.drink_types, key=lambda dt: dt.sort_order)
        self.session_name = data.session_name
        self.invite_code = data.invite_code
        self.is_owner = data.is_owner
        self.current_participant_id = data.current_participant_id

    # Change feed

    def _on_participants_change(self, change: ChangeEvent) -> None:
        if not self._closed:
            self._spawn(self._reload_quietly())

    def _on_drink_types_change(self, change: ChangeEvent) -> None:
        if not self._closed:
            self._spawn(self._reload_quietly())

    def _on_events_change(self, change: ChangeEvent) -> None:
        if self._closed:
            return
        if change.type == INSERT and change.record:
            try:
                incoming = DrinkEvent(**change.record)
            except ValidationError as e:
                logger.warning(f"Malformed drink event from the change feed, reloading: {e}")
            else:
                self.apply_event_insert(incoming)
                return
        self._spawn(self._reload_quietly())
