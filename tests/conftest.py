import asyncio
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from affinity.core.errors import PersistFailure
from affinity.models import ActivityEvent, UserItemWeights
from affinity.services.activity import ActivityService
from affinity.services.store import InMemoryActivityLogStore, InMemoryItemWeightsStore


NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_event(user="U1", item="I1", action="like", days=0, item_type="article", now=NOW) -> ActivityEvent:
    return ActivityEvent(
        user=user,
        item=item,
        itemType=item_type,
        action=action,
        dateCreated=now - timedelta(days=days),
    )


class InstrumentedLogStore(InMemoryActivityLogStore):
    """In-memory log that records call order and how many streams are open at once."""

    def __init__(self, calls: List[str], read_delay: float = 0.005) -> None:
        super().__init__()
        self.calls = calls
        self.read_delay = read_delay
        self.open_streams = 0
        self.max_open_streams = 0
        self.streamed: List[str] = []

    async def distinct_user_ids(self):
        self.calls.append("list")
        return await super().distinct_user_ids()

    async def stream_for_user(self, user):
        self.calls.append(f"stream:{user}")
        self.streamed.append(user)
        self.open_streams += 1
        self.max_open_streams = max(self.max_open_streams, self.open_streams)
        try:
            async for event in super().stream_for_user(user):
                await asyncio.sleep(self.read_delay)
                yield event
        finally:
            self.open_streams -= 1


class InstrumentedWeightsStore(InMemoryItemWeightsStore):
    """In-memory derived store that can be told to fail for particular users."""

    def __init__(self, calls: List[str], fail_for=()) -> None:
        super().__init__()
        self.calls = calls
        self.fail_for = set(fail_for)
        self.drop_count = 0

    async def drop_all(self):
        self.calls.append("drop")
        self.drop_count += 1
        await super().drop_all()

    async def upsert(self, record: UserItemWeights):
        self.calls.append(f"upsert:{record.user}")
        if record.user in self.fail_for:
            raise PersistFailure(f"write for {record.user} rejected")
        await super().upsert(record)


@pytest.fixture
def calls():
    return []


@pytest.fixture
def log_store(calls):
    return InstrumentedLogStore(calls)


@pytest.fixture
def weights_store(calls):
    return InstrumentedWeightsStore(calls)


@pytest.fixture
def service(log_store, weights_store):
    return ActivityService(log_store, weights_store)
