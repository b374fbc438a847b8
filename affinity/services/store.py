import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, List, Protocol, Tuple

from bson import ObjectId
from pydantic import ValidationError
from pymongo import ASCENDING
from pymongo.errors import ConnectionFailure, ExecutionTimeout, PyMongoError, WTimeoutError

from affinity.core.config import Settings
from affinity.core.errors import PersistFailure, StoreUnavailable, StreamFailure
from affinity.models import ActivityEvent, UserItemWeights

logger = logging.getLogger(__name__)

# server unreachable, or the operation ran past its time limit
UNAVAILABLE_ERRORS = (ConnectionFailure, ExecutionTimeout, WTimeoutError)


class ActivityLogStore(Protocol):
    async def append(self, user: str, item: str, item_type: str, action: str) -> ActivityEvent: ...

    async def remove(self, user: str, item: str, action: str) -> int: ...

    def stream_for_user(self, user: str) -> AsyncIterator[ActivityEvent]: ...

    async def distinct_user_ids(self) -> List[str]: ...


class ItemWeightsStore(Protocol):
    async def drop_all(self) -> None: ...

    async def upsert(self, record: UserItemWeights) -> None: ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryActivityLogStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self.events_by_user: Dict[str, List[ActivityEvent]] = defaultdict(list)

    async def add(self, event: ActivityEvent) -> None:
        async with self._lock:
            self.events_by_user[event.user].append(event)

    async def append(self, user: str, item: str, item_type: str, action: str) -> ActivityEvent:
        event = ActivityEvent(user=user, item=item, itemType=item_type, action=action, dateCreated=_now())
        await self.add(event)
        return event

    async def remove(self, user: str, item: str, action: str) -> int:
        async with self._lock:
            events = self.events_by_user.get(user, [])
            kept = [e for e in events if not (e.item == item and e.action == action)]
            removed = len(events) - len(kept)
            if kept:
                self.events_by_user[user] = kept
            else:
                self.events_by_user.pop(user, None)
            return removed

    async def stream_for_user(self, user: str) -> AsyncIterator[ActivityEvent]:
        async with self._lock:
            events = list(self.events_by_user.get(user, []))
        for event in events:
            # hand control back between events the way a cursor read would
            await asyncio.sleep(0)
            yield event

    async def distinct_user_ids(self) -> List[str]:
        async with self._lock:
            return [uid for uid, events in self.events_by_user.items() if events]


class InMemoryItemWeightsStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self.records: Dict[str, UserItemWeights] = {}

    async def drop_all(self) -> None:
        async with self._lock:
            self.records.clear()

    async def upsert(self, record: UserItemWeights) -> None:
        async with self._lock:
            self.records[record.user] = record


def _translate(e: PyMongoError, what: str, fallback):
    if isinstance(e, UNAVAILABLE_ERRORS):
        return StoreUnavailable(f"{what} unreachable or timed out: {e}")
    return fallback(f"{what} failed: {e}")


def _id_filter(value: str):
    # ids written by other services may be ObjectIds rather than strings
    if ObjectId.is_valid(value):
        return {"$in": [value, ObjectId(value)]}
    return value


class MongoActivityLogStore:
    """Activity log kept in a MongoDB collection, one document per action."""

    def __init__(self, coll) -> None:
        self.coll = coll

    async def ensure_indexes(self) -> None:
        try:
            await self.coll.create_index([("user", ASCENDING)])
            await self.coll.create_index([("user", ASCENDING), ("item", ASCENDING), ("action", ASCENDING)])
        except PyMongoError as e:
            raise _translate(e, "activity log", StoreUnavailable) from e

    async def append(self, user: str, item: str, item_type: str, action: str) -> ActivityEvent:
        doc = {
            "user": user,
            "item": item,
            "itemType": item_type,
            "action": action,
            "dateCreated": _now(),
        }
        try:
            await self.coll.insert_one(doc)
        except PyMongoError as e:
            raise _translate(e, "appending to the activity log", PersistFailure) from e
        return ActivityEvent(**doc)

    async def remove(self, user: str, item: str, action: str) -> int:
        query = {"user": _id_filter(user), "item": _id_filter(item), "action": action}
        try:
            res = await self.coll.delete_many(query)
        except PyMongoError as e:
            raise _translate(e, "removing from the activity log", PersistFailure) from e
        return res.deleted_count

    async def stream_for_user(self, user: str) -> AsyncIterator[ActivityEvent]:
        cursor = self.coll.find({"user": _id_filter(user)}, projection={"_id": False})
        try:
            async for doc in cursor:
                yield ActivityEvent(**doc)
        except (PyMongoError, ValidationError) as e:
            raise StreamFailure(f"activity stream for user {user} failed: {e}") from e
        finally:
            await cursor.close()

    async def distinct_user_ids(self) -> List[str]:
        try:
            user_ids = await self.coll.distinct("user")
        except PyMongoError as e:
            raise _translate(e, "activity log", StoreUnavailable) from e
        return [str(uid) for uid in user_ids]


class MongoItemWeightsStore:
    """Derived per-user item weights, one document per user."""

    def __init__(self, coll) -> None:
        self.coll = coll

    async def ensure_indexes(self) -> None:
        try:
            await self.coll.create_index([("user", ASCENDING)], unique=True)
        except PyMongoError as e:
            raise _translate(e, "item weights store", StoreUnavailable) from e

    async def drop_all(self) -> None:
        try:
            res = await self.coll.delete_many({})
        except PyMongoError as e:
            raise _translate(e, "dropping item weights", PersistFailure) from e
        logger.info("Dropped %d user item weight records", res.deleted_count)

    async def upsert(self, record: UserItemWeights) -> None:
        try:
            await self.coll.replace_one({"user": record.user}, record.model_dump(), upsert=True)
        except PyMongoError as e:
            raise _translate(e, f"saving item weights for user {record.user}", PersistFailure) from e


def build_stores(cfg: Settings) -> Tuple[ActivityLogStore, ItemWeightsStore]:
    if cfg.store_backend == "memory":
        logger.info("Using in-memory activity and item weight stores")
        return InMemoryActivityLogStore(), InMemoryItemWeightsStore()
    if cfg.store_backend != "mongo":
        raise ValueError(f"Unknown STORE_BACKEND {cfg.store_backend!r}, expected 'mongo' or 'memory'")

    from affinity.core.db import activity_coll, item_weights_coll

    return MongoActivityLogStore(activity_coll), MongoItemWeightsStore(item_weights_coll)
