import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from affinity.models import AgeOffConfig
from affinity.services.decay import DEFAULT_AGE_OFF
from affinity.services.store import ActivityLogStore, ItemWeightsStore
from affinity.services.weights import aggregate_user

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 2


@dataclass
class RecomputeSummary:
    users: int
    started_at: datetime
    elapsed: float


async def recompute_user(
    user_id: str,
    log_store: ActivityLogStore,
    weights_store: ItemWeightsStore,
    now: datetime,
    config: AgeOffConfig = DEFAULT_AGE_OFF,
) -> None:
    record = await aggregate_user(user_id, log_store.stream_for_user(user_id), now=now, config=config)
    await weights_store.upsert(record)


async def recompute_all(
    log_store: ActivityLogStore,
    weights_store: ItemWeightsStore,
    config: AgeOffConfig = DEFAULT_AGE_OFF,
    concurrency: int = DEFAULT_CONCURRENCY,
    now: Optional[datetime] = None,
) -> RecomputeSummary:
    """
    Rebuild every user's item weights from the activity log.

    Existing records are dropped first, then users are processed by a pool of
    ``concurrency`` workers. The first failure stops workers from picking up
    more users; units already running are allowed to finish, and the original
    exception is raised once the pool has drained. Records dropped before a
    failure are not restored.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    started_at = now or datetime.now(timezone.utc)
    t0 = time.perf_counter()

    try:
        logger.info("Dropping existing user item weights")
        await weights_store.drop_all()

        user_ids = await log_store.distinct_user_ids()
        logger.info("Recomputing item weights for %d users (concurrency=%d)", len(user_ids), concurrency)

        pending = iter(user_ids)
        failures: List[BaseException] = []

        async def worker() -> None:
            for user_id in pending:
                if failures:
                    return
                logger.debug("Processing user %s", user_id)
                try:
                    await recompute_user(user_id, log_store, weights_store, started_at, config)
                except Exception as e:
                    logger.error("Item weights for user %s failed: %s", user_id, e)
                    failures.append(e)
                    return

        await asyncio.gather(*(worker() for _ in range(min(concurrency, len(user_ids)))))

        if failures:
            raise failures[0]
    except Exception:
        logger.error(
            "Item weight recompute failed; the derived store was dropped and may be partially rebuilt"
        )
        raise

    elapsed = time.perf_counter() - t0
    logger.info("Recomputed item weights for %d users in %.2fs", len(user_ids), elapsed)
    return RecomputeSummary(users=len(user_ids), started_at=started_at, elapsed=elapsed)
