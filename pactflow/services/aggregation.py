"""KPI and risk aggregation over a materialized set of contracts.

Functions here take whatever slice of contracts a dashboard asked for and
make a single pass over it. Status and risk labels are compared
case-insensitively because upstream writers are not consistent about casing.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable

from pactflow.models.status import ContractStatus, RiskLevel
from pactflow.repositories.base import matches_search
from pactflow.schemas.kpi import (
    ExpiringContract,
    KPISnapshot,
    LegalKPI,
    ProcurementKPI,
    RiskDistribution,
)
from pactflow.services import temporal
from pactflow.services.temporal import DEFAULT_POLICY, ExpiryPolicy

_ACTIVE = ContractStatus.ACTIVE.value.lower()
_EXPIRED = ContractStatus.EXPIRED.value.lower()
_ZERO = Decimal("0")


@dataclass
class _Tally:
    total: int = 0
    active: int = 0
    expired: int = 0
    pending: int = 0
    low: int = 0
    medium: int = 0
    high: int = 0
    total_value: Decimal = _ZERO
    active_value: Decimal = _ZERO


def percentage(count: int, total: int) -> float:
    return count / total * 100 if total > 0 else 0.0


def compute_aggregates(
    contracts: Iterable,
    now: date | datetime | None = None,
    search: str | None = None,
    policy: ExpiryPolicy = DEFAULT_POLICY,
) -> KPISnapshot:
    """Build a KPI snapshot from one pass over ``contracts``.

    The search predicate is applied first, so every figure (including the
    risk percentage denominators) describes only the matching rows.
    """
    now = now or datetime.now(timezone.utc)
    tally = _Tally()
    windows = {w: 0 for w in policy.windows}

    for contract in contracts:
        if not matches_search(contract, search):
            continue
        tally.total += 1

        status = (temporal.effective_status(contract, now) or "").lower()
        value = _as_decimal(contract.value_rp)
        tally.total_value += value
        if status == _ACTIVE:
            tally.active += 1
            tally.active_value += value
        elif status == _EXPIRED:
            tally.expired += 1
        else:
            tally.pending += 1

        risk = RiskLevel.parse(contract.risk)
        if risk is RiskLevel.LOW:
            tally.low += 1
        elif risk is RiskLevel.MEDIUM:
            tally.medium += 1
        elif risk is RiskLevel.HIGH:
            tally.high += 1

        days = temporal.days_to_expiry(contract.end_date, now)
        for window in temporal.windows_containing(days, policy.windows):
            windows[window] += 1

    assessed = tally.low + tally.medium + tally.high
    return KPISnapshot(
        total_contracts=tally.total,
        active_contracts=tally.active,
        pending_contracts=tally.pending,
        expired_contracts=tally.expired,
        high_risk_contracts=tally.high,
        expiring_7_days=windows.get(7, 0),
        expiring_30_days=windows.get(30, 0),
        expiring_60_days=windows.get(60, 0),
        expiring_90_days=windows.get(90, 0),
        expiring_by_window=windows,
        total_contract_value=tally.total_value,
        avg_active_contract_value=(tally.active_value / tally.active) if tally.active else _ZERO,
        low_risk_count=tally.low,
        medium_risk_count=tally.medium,
        high_risk_count=tally.high,
        total_risk_assessed=assessed,
        low_risk_percentage=percentage(tally.low, assessed),
        medium_risk_percentage=percentage(tally.medium, assessed),
        high_risk_percentage=percentage(tally.high, assessed),
        computed_at=now if isinstance(now, datetime) else datetime.combine(now, datetime.min.time()),
    )


def risk_distribution(contracts: Iterable) -> RiskDistribution:
    counts = Counter(RiskLevel.parse(c.risk) for c in contracts)
    return RiskDistribution(
        high=counts[RiskLevel.HIGH],
        medium=counts[RiskLevel.MEDIUM],
        low=counts[RiskLevel.LOW],
        unassessed=counts[None],
        total=sum(counts.values()),
    )


def expiring_contracts(
    contracts: Iterable,
    now: date | datetime | None = None,
    within_days: int = 90,
    policy: ExpiryPolicy = DEFAULT_POLICY,
) -> list[ExpiringContract]:
    """Contracts ending within ``within_days``, soonest first, with badge classification."""
    now = now or datetime.now(timezone.utc)
    rows = []
    for contract in contracts:
        days = temporal.days_to_expiry(contract.end_date, now)
        if days is None or days < 0 or days > within_days:
            continue
        if temporal.effective_status(contract, now) == ContractStatus.REJECTED.value:
            continue
        classification = temporal.classify_contract(contract, now, policy.badge, policy.windows)
        rows.append(
            ExpiringContract(
                id=contract.id,
                name=contract.name,
                second_party=contract.second_party,
                value_rp=contract.value_rp,
                end_date=contract.end_date,
                risk=contract.risk,
                status=contract.status,
                days_to_expiry=days,
                bucket=classification.bucket,
                temporally_active=classification.temporally_active,
            )
        )
    rows.sort(key=lambda row: row.days_to_expiry)
    return rows


def compute_legal_kpi(contracts: Iterable, now: date | datetime | None = None) -> LegalKPI:
    now = now or datetime.now(timezone.utc)
    week_start = temporal.start_of_week(now)
    this_week = high_risk = awaiting_review = 0
    for contract in contracts:
        if contract.created_at is not None and temporal.as_day(contract.created_at) >= week_start:
            this_week += 1
        if RiskLevel.parse(contract.risk) is RiskLevel.HIGH:
            high_risk += 1
        if _parse_status(contract.status) is ContractStatus.SUBMITTED:
            awaiting_review += 1
    return LegalKPI(
        contracts_this_week=this_week,
        high_risk=high_risk,
        pending_review=awaiting_review,
    )


def compute_procurement_kpi(contracts: Iterable, now: date | datetime | None = None) -> ProcurementKPI:
    now = now or datetime.now(timezone.utc)
    today = temporal.as_day(now)
    this_month = (today.year, today.month)
    last_month = (today.year, today.month - 1) if today.month > 1 else (today.year - 1, 12)

    new_this_month = new_last_month = pending_legal = approved = decided = 0
    for contract in contracts:
        if contract.created_at is not None:
            created = temporal.as_day(contract.created_at)
            if (created.year, created.month) == this_month:
                new_this_month += 1
            elif (created.year, created.month) == last_month:
                new_last_month += 1

        status = _parse_status(contract.status)
        if status is ContractStatus.SUBMITTED:
            pending_legal += 1
        if status in (ContractStatus.APPROVED, ContractStatus.ACTIVE, ContractStatus.EXPIRED):
            approved += 1
            decided += 1
        elif status is ContractStatus.REJECTED:
            decided += 1

    if new_last_month:
        delta = round((new_this_month - new_last_month) / new_last_month * 100)
    else:
        delta = 100 if new_this_month else 0

    return ProcurementKPI(
        new_this_month=new_this_month,
        new_last_month=new_last_month,
        delta_percentage=delta,
        pending_legal_review=pending_legal,
        approved_count=approved,
        approval_rate_percentage=percentage(approved, decided),
    )


def _as_decimal(value) -> Decimal:
    if value is None:
        return _ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _parse_status(value: str | None) -> ContractStatus | None:
    if value is None:
        return None
    try:
        return ContractStatus.parse(value)
    except ValueError:
        return None
