import argparse
import asyncio
import logging
import sys

from affinity.core.config import settings
from affinity.core.log import configure_logging
from affinity.services.activity import ActivityService

logger = logging.getLogger("affinity.cli")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rebuild every user's item weights from the activity log.")
    parser.add_argument("--concurrency", type=int, default=settings.recompute_concurrency,
                        help="users processed at the same time")
    parser.add_argument("--timeout", type=float, default=settings.recompute_timeout,
                        help="fail the batch if it runs longer than this many seconds")
    parser.add_argument("--log-level", default=settings.log_level)
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    service = ActivityService.from_settings(settings)
    service.concurrency = args.concurrency
    service.timeout = args.timeout
    try:
        summary = await service.recompute_user_item_weights()
    except Exception as e:
        logger.error("Recompute failed: %s", e)
        return 1
    logger.info("Recompute finished: %d users in %.2fs", summary.users, summary.elapsed)
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
