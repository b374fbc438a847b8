import logging
import math
from datetime import datetime, timezone
from typing import AsyncIterable, Dict, Iterable, List, Optional, Union

from affinity.models import ActivityEvent, AgeOffConfig, ItemWeight, UserItemWeights
from affinity.services.decay import DEFAULT_AGE_OFF, activity_weight

logger = logging.getLogger(__name__)

EventSource = Union[Iterable[ActivityEvent], AsyncIterable[ActivityEvent]]


class ItemAccumulator:
    """Sums decayed activity weights per item for a single user."""

    def __init__(self, now: datetime, config: AgeOffConfig = DEFAULT_AGE_OFF) -> None:
        self.now = now
        self.config = config
        self._items: Dict[str, ItemWeight] = {}

    def add(self, event: ActivityEvent) -> None:
        entry = self._items.get(event.item)
        if entry is None:
            # first itemType seen for an item wins
            entry = ItemWeight(item=event.item, itemType=event.itemType, weight=0.0)
            self._items[event.item] = entry
        entry.weight += activity_weight(event.action, event.dateCreated, self.now, self.config)

    def item_weights(self) -> List[ItemWeight]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)


def row_weight(item_weights: Iterable[ItemWeight]) -> float:
    return math.sqrt(sum(iw.weight * iw.weight for iw in item_weights))


async def aggregate_user(
    user_id: str,
    events: EventSource,
    now: Optional[datetime] = None,
    config: AgeOffConfig = DEFAULT_AGE_OFF,
) -> UserItemWeights:
    """
    Fold one user's activity stream into their ``UserItemWeights``.

    ``events`` may be a plain iterable or an async iterable such as a database
    cursor; it is consumed one event at a time. Errors raised by the stream
    propagate and no record is produced.
    """
    acc = ItemAccumulator(now or datetime.now(timezone.utc), config)

    if hasattr(events, "__aiter__"):
        async for event in events:
            acc.add(event)
    else:
        for event in events:
            acc.add(event)

    item_weights = acc.item_weights()
    result = UserItemWeights(
        user=user_id,
        itemWeights=item_weights,
        rowWeight=row_weight(item_weights),
    )
    logger.debug("User %s: %d items, row weight %.4f", user_id, len(acc), result.rowWeight)
    return result
