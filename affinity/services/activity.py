import asyncio
import logging
from typing import Optional

from affinity.core.config import Settings, settings
from affinity.core.errors import RecomputeTimeout
from affinity.models import ActivityEvent, AgeOffConfig
from affinity.services.recompute import DEFAULT_CONCURRENCY, RecomputeSummary, recompute_all
from affinity.services.store import ActivityLogStore, ItemWeightsStore, build_stores

logger = logging.getLogger(__name__)


class ActivityService:

    def __init__(
        self,
        log_store: ActivityLogStore,
        weights_store: ItemWeightsStore,
        age_off: Optional[AgeOffConfig] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        timeout: Optional[float] = None,
    ) -> None:
        self.log_store = log_store
        self.weights_store = weights_store
        self.age_off = age_off or AgeOffConfig()
        self.concurrency = concurrency
        self.timeout = timeout

    @classmethod
    def from_settings(cls, cfg: Settings) -> "ActivityService":
        log_store, weights_store = build_stores(cfg)
        return cls(
            log_store,
            weights_store,
            age_off=AgeOffConfig(
                maxDays=cfg.age_off_max_days,
                exponent=cfg.age_off_exponent,
                easing=cfg.age_off_easing,
            ),
            concurrency=cfg.recompute_concurrency,
            timeout=cfg.recompute_timeout,
        )

    async def ensure_indexes(self) -> None:
        for store in (self.log_store, self.weights_store):
            ensure = getattr(store, "ensure_indexes", None)
            if ensure is not None:
                await ensure()

    async def log_action(self, user: str, item: str, item_type: str, action: str) -> ActivityEvent:
        logger.debug("User %s took action %s on %s item %s", user, action, item_type, item)
        return await self.log_store.append(user, item, item_type, action)

    async def remove_action(self, user: str, item: str, action: str) -> int:
        deleted = await self.log_store.remove(user, item, action)
        logger.debug("User %s removed action %s on item %s (%d rows)", user, action, item, deleted)
        return deleted

    async def recompute_user_item_weights(self) -> RecomputeSummary:
        run = recompute_all(
            self.log_store,
            self.weights_store,
            config=self.age_off,
            concurrency=self.concurrency,
        )
        if self.timeout is None:
            return await run
        try:
            return await asyncio.wait_for(run, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("Item weight recompute timed out after %ss", self.timeout)
            raise RecomputeTimeout(f"recompute did not finish within {self.timeout}s") from e


_service: Optional[ActivityService] = None


def get_activity_service() -> ActivityService:
    global _service
    if _service is None:
        _service = ActivityService.from_settings(settings)
    return _service
