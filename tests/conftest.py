"""
Test configuration and fixtures
"""

import asyncio
import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from onemore.config.settings import Settings
from onemore.modules.drink_events.schemas import DrinkEvent
from onemore.modules.drink_types.schemas import DrinkType
from onemore.modules.live.realtime import ChangeEvent
from onemore.modules.participants.schemas import Participant
from onemore.modules.sessions.schemas import SessionData

NOW = datetime(2026, 10, 19, 21, 0, tzinfo=timezone.utc)


class FakeQuery:
    """Records a Supabase query-builder chain; execute() returns the next queued response."""

    def __init__(self, client: "FakeSupabase", table: str):
        self.client = client
        self.table = table
        self.calls: List[tuple] = []

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        return self

    def select(self, *args, **kwargs):
        return self._record("select", *args, **kwargs)

    def insert(self, *args, **kwargs):
        return self._record("insert", *args, **kwargs)

    def update(self, *args, **kwargs):
        return self._record("update", *args, **kwargs)

    def upsert(self, *args, **kwargs):
        return self._record("upsert", *args, **kwargs)

    def delete(self, *args, **kwargs):
        return self._record("delete", *args, **kwargs)

    def eq(self, *args, **kwargs):
        return self._record("eq", *args, **kwargs)

    def is_(self, *args, **kwargs):
        return self._record("is_", *args, **kwargs)

    def in_(self, *args, **kwargs):
        return self._record("in_", *args, **kwargs)

    def order(self, *args, **kwargs):
        return self._record("order", *args, **kwargs)

    def limit(self, *args, **kwargs):
        return self._record("limit", *args, **kwargs)

    def called(self, name: str) -> Optional[tuple]:
        return next((c for c in self.calls if c[0] == name), None)

    async def execute(self):
        queued = self.client.responses[self.table]
        response = queued.pop(0) if queued else []
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(data=response)


class FakeSupabase:
    def __init__(self):
        self.responses: Dict[str, list] = defaultdict(list)
        self.queries: List[FakeQuery] = []

    def queue(self, table: str, *responses):
        """Queue row lists (or exceptions) for successive execute() calls on a table"""
        self.responses[table].extend(responses)

    def table(self, name: str) -> FakeQuery:
        query = FakeQuery(self, name)
        self.queries.append(query)
        return query

    def queries_for(self, table: str) -> List[FakeQuery]:
        return [q for q in self.queries if q.table == table]


@pytest.fixture
def mock_supabase():
    """Supabase client stub with a recording query builder."""
    return FakeSupabase()


def participant_row(pid, name, session_id="s1", color_index=None, claimed_by=None, created_at=None):
    return {
        "id": pid,
        "session_id": session_id,
        "display_name": name,
        "claimed_by_user_id": claimed_by,
        "color_index": color_index,
        "created_at": (created_at or NOW).isoformat(),
    }


def drink_type_row(dtid, name="Cerveza", sort_order=0, price_cents=300, category="beer", emoji="🍺", session_id="s1"):
    return {
        "id": dtid,
        "session_id": session_id,
        "name": name,
        "category": category,
        "price_cents": price_cents,
        "emoji": emoji,
        "sort_order": sort_order,
        "created_at": NOW.isoformat(),
    }


def event_row(eid, participant_id, drink_type_id="dt1", delta=1, actor="owner", created_at=None, session_id="s1"):
    return {
        "id": eid,
        "session_id": session_id,
        "actor_user_id": actor,
        "target_participant_id": participant_id,
        "drink_type_id": drink_type_id,
        "delta": delta,
        "created_at": (created_at or NOW).isoformat(),
    }


def session_row(sid="s1", owner="owner", name="Friday", invite_code="ABCD2345", created_at=None):
    return {
        "id": sid,
        "owner_user_id": owner,
        "name": name,
        "invite_code": invite_code,
        "created_at": (created_at or NOW).isoformat(),
    }


class FakeSessionService:
    """In-memory stand-in for SessionService used by LiveSession.

    Rows are the authoritative store. Writes can be held before or after the
    row is stored, or made to fail.
    """

    def __init__(self, session_id="s1", owner_id="owner", user_id="owner"):
        self.session_id = session_id
        self.owner_id = owner_id
        self.user_id = user_id
        self.name = "Friday"
        self.invite_code = "ABCD2345"
        self.participant_rows: List[Participant] = []
        self.drink_type_rows: List[DrinkType] = []
        self.event_rows: List[DrinkEvent] = []
        self.before_insert = asyncio.Event()
        self.before_insert.set()
        self.after_insert = asyncio.Event()
        self.after_insert.set()
        self.event_error: Optional[Exception] = None
        self.participant_error: Optional[Exception] = None
        self.load_gates: List[asyncio.Event] = []
        self.load_calls = 0
        # SessionService exposes its sub-services as attributes
        self.participants = self
        self.drink_events = self

    def seed_participant(self, name, color_index=None, claimed_by=None, offset_seconds=0) -> Participant:
        p = Participant(
            id=f"p-{uuid.uuid4().hex[:6]}",
            session_id=self.session_id,
            display_name=name,
            claimed_by_user_id=claimed_by,
            color_index=color_index,
            created_at=datetime.now(timezone.utc) + timedelta(seconds=offset_seconds),
        )
        self.participant_rows.append(p)
        return p

    def seed_drink_type(self, name="Cerveza", price_cents=300, sort_order=None) -> DrinkType:
        dt = DrinkType(
            id=f"dt-{uuid.uuid4().hex[:6]}",
            session_id=self.session_id,
            name=name,
            category="beer",
            price_cents=price_cents,
            emoji="🍺",
            sort_order=len(self.drink_type_rows) if sort_order is None else sort_order,
        )
        self.drink_type_rows.append(dt)
        return dt

    def seed_event(self, participant_id, drink_type_id, delta=1, actor="someone-else") -> DrinkEvent:
        event = DrinkEvent(
            id=str(uuid.uuid4()),
            session_id=self.session_id,
            actor_user_id=actor,
            target_participant_id=participant_id,
            drink_type_id=drink_type_id,
            delta=delta,
            created_at=datetime.now(timezone.utc),
        )
        self.event_rows.append(event)
        return event

    async def load_session_data(self, session_id, user_id) -> SessionData:
        self.load_calls += 1
        current = next((p for p in self.participant_rows if p.claimed_by_user_id == user_id), None)
        data = SessionData(
            participants=list(self.participant_rows),
            drink_types=list(self.drink_type_rows),
            events=list(self.event_rows),
            invite_code=self.invite_code,
            is_owner=user_id == self.owner_id,
            session_name=self.name,
            current_participant_id=current.id if current else None,
        )
        if self.load_gates:
            await self.load_gates.pop(0).wait()
        return data

    async def add_drink_event(self, session_id, participant_id, drink_type_id, delta, actor_user_id) -> DrinkEvent:
        await self.before_insert.wait()
        if self.event_error is not None:
            raise self.event_error
        event = self.seed_event(participant_id, drink_type_id, delta, actor=actor_user_id)
        await self.after_insert.wait()
        return event

    async def add_participant_slot(self, session_id, participant_data, claimed_by_user_id=None) -> Participant:
        await self.before_insert.wait()
        if self.participant_error is not None:
            raise self.participant_error
        return self.seed_participant(participant_data.display_name, color_index=participant_data.color_index)


class FakeFeed:
    """Captures subscriptions so tests can push change events."""

    def __init__(self):
        self.callbacks: Dict[str, Any] = {}
        self.closed = False

    async def subscribe(self, table, session_id, callback):
        self.callbacks[table] = callback

    async def unsubscribe_all(self):
        self.callbacks.clear()
        self.closed = True

    def emit(self, table: str, change_type: str, record: Optional[dict] = None):
        self.callbacks[table](ChangeEvent(table=table, type=change_type, record=record))


@pytest.fixture
def backend():
    return FakeSessionService()


@pytest.fixture
def feed():
    return FakeFeed()


@pytest.fixture
def live_config():
    """Settings with timers short enough for tests."""
    return Settings(
        participant_reload_delay_seconds=0,
        recent_activity_sweep_seconds=0.01,
    )


async def settle():
    """Let scheduled tasks run up to their next await point."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def current_user():
    """User returned by the auth dependency in API tests; tests may change the id."""
    return {"id": "owner", "is_anonymous": True, "created_at": None}


@pytest.fixture
def client(mock_supabase, current_user):
    """Test client with the Supabase client and the bearer-token user overridden"""
    from fastapi.testclient import TestClient

    from onemore.core.dependencies import get_current_user
    from onemore.database.supabase_client import get_supabase
    from onemore.main import app

    app.dependency_overrides[get_supabase] = lambda: mock_supabase
    app.dependency_overrides[get_current_user] = lambda: current_user
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
