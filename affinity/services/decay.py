from datetime import datetime, timezone

from affinity.models import ActionEnum, AgeOffConfig

DEFAULT_AGE_OFF = AgeOffConfig()


def _as_utc(value: datetime) -> datetime:
    # MongoDB hands back naive datetimes that are already UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_old(date_created: datetime, now: datetime) -> int:
    """Whole days between ``date_created`` and ``now``; future dates count as 0."""
    age = (_as_utc(now) - _as_utc(date_created)).days
    return age if age > 0 else 0


def activity_weight(
    action: str,
    date_created: datetime,
    now: datetime,
    config: AgeOffConfig = DEFAULT_AGE_OFF,
) -> float:
    """
    Contribution of one action to the user's weight for its item.

    Only likes count. The weight follows an inverted ease-in-out cubic over the
    event's age: 1.0 for a new event, 0.0 once it is ``config.maxDays`` old.
    """
    if action != ActionEnum.LIKE.value:
        return 0.0

    age = days_old(date_created, now)
    if age > config.maxDays:
        return 0.0

    relative_age = age / config.maxDays
    if relative_age < 0.5:
        return 1 - config.easing * relative_age ** config.exponent
    return config.easing * (1 - relative_age) ** config.exponent
