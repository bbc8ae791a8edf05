"""Date-window classification of contracts relative to "now".

Everything here is pure: no clock access beyond the ``now`` argument, no I/O,
no writes. Reclassifying a stored status to Expired is done by the lifecycle
service, not by this module.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Iterable

from pactflow.models.status import ContractStatus

EXPIRED = "expired"
CRITICAL = "critical"
EXPIRING_SOON = "expiring-soon"
ACTIVE = "active"
UNDATED = "undated"


@dataclass(frozen=True)
class ExpiryThresholds:
    critical_days: int
    warning_days: int

    def __post_init__(self) -> None:
        if self.critical_days < 0 or self.warning_days < self.critical_days:
            raise ValueError(
                f"Invalid thresholds: critical={self.critical_days} warning={self.warning_days}"
            )


LIFECYCLE_THRESHOLDS = ExpiryThresholds(critical_days=15, warning_days=60)
BADGE_THRESHOLDS = ExpiryThresholds(critical_days=30, warning_days=60)


@dataclass(frozen=True)
class ExpiryPolicy:
    """Single source of truth for every expiry cut-off used by the dashboards."""

    lifecycle: ExpiryThresholds = LIFECYCLE_THRESHOLDS
    badge: ExpiryThresholds = BADGE_THRESHOLDS
    windows: tuple[int, ...] = (7, 30, 60, 90)

    def __post_init__(self) -> None:
        if any(w <= 0 for w in self.windows):
            raise ValueError(f"Expiry windows must be positive: {self.windows}")


DEFAULT_POLICY = ExpiryPolicy()


@dataclass(frozen=True)
class ExpiryClassification:
    bucket: str
    days_to_expiry: int | None
    temporally_active: bool
    windows: tuple[int, ...] = field(default=())


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def as_day(value: date | datetime) -> date:
    """Drop the time of day; all comparisons here are at day granularity."""
    if isinstance(value, datetime):
        return value.date()
    return value


def days_to_expiry(end_date: date | datetime | None, now: date | datetime) -> int | None:
    if end_date is None:
        return None
    return (as_day(end_date) - as_day(now)).days


def bucket_for(days: int | None, thresholds: ExpiryThresholds = LIFECYCLE_THRESHOLDS) -> str:
    if days is None:
        return UNDATED
    if days < 0:
        return EXPIRED
    if days <= thresholds.critical_days:
        return CRITICAL
    if days <= thresholds.warning_days:
        return EXPIRING_SOON
    return ACTIVE


def is_temporally_active(
    start_date: date | datetime | None,
    end_date: date | datetime | None,
    now: date | datetime,
) -> bool:
    if start_date is None or end_date is None:
        return False
    return as_day(start_date) <= as_day(now) <= as_day(end_date)


def windows_containing(days: int | None, windows: Iterable[int]) -> tuple[int, ...]:
    """Expiry windows a contract counts toward. Windows overlap: 0 < days <= window."""
    if days is None or days <= 0:
        return ()
    return tuple(w for w in sorted(windows) if days <= w)


def classify_contract(
    contract,
    now: date | datetime,
    thresholds: ExpiryThresholds = LIFECYCLE_THRESHOLDS,
    windows: Iterable[int] = DEFAULT_POLICY.windows,
) -> ExpiryClassification:
    days = days_to_expiry(contract.end_date, now)
    return ExpiryClassification(
        bucket=bucket_for(days, thresholds),
        days_to_expiry=days,
        temporally_active=is_temporally_active(contract.start_date, contract.end_date, now),
        windows=windows_containing(days, windows),
    )


def is_overdue(contract, now: date | datetime) -> bool:
    """True when the end date has passed and the stored status must become Expired."""
    days = days_to_expiry(contract.end_date, now)
    if days is None or days >= 0:
        return False
    try:
        status = ContractStatus.parse(contract.status)
    except ValueError:
        return True
    return not status.is_terminal


def effective_status(contract, now: date | datetime) -> str:
    """Stored status with the expiry rule applied. Rejected is never overridden."""
    if is_overdue(contract, now):
        return ContractStatus.EXPIRED.value
    return contract.status


def weekly_expiry_histogram(contracts: Iterable, now: date | datetime, weeks: int = 13) -> list[int]:
    """Count contracts expiring in each of the next ``weeks`` seven-day slots.

    Slot 0 covers days 1-7 after today, slot 1 days 8-14 and so on; contracts
    ending today or earlier are not counted.
    """
    counts = [0] * weeks
    for contract in contracts:
        days = days_to_expiry(contract.end_date, now)
        if days is None or days <= 0:
            continue
        slot = math.ceil(days / 7) - 1
        if slot < weeks:
            counts[slot] += 1
    return counts


def start_of_week(now: date | datetime) -> date:
    """Most recent Sunday (weeks start on Sunday in the legal dashboard)."""
    today = as_day(now)
    return today - timedelta(days=(today.weekday() + 1) % 7)
