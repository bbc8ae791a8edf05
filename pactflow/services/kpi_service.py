import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone

from pactflow.exceptions import AggregationSourceUnavailable, StoreUnavailableError
from pactflow.models import Contract
from pactflow.repositories.base import ContractFilter, ContractStore
from pactflow.schemas.kpi import (
    ExpiringContract,
    KPIResponse,
    KPISnapshot,
    LegalKPI,
    ProcurementKPI,
    RiskDistribution,
)
from pactflow.services import aggregation, temporal
from pactflow.services.temporal import DEFAULT_POLICY, ExpiryPolicy

logger = logging.getLogger(__name__)


@dataclass
class AggregateResult:
    """Either a snapshot or the reason it could not be computed. Never both."""

    snapshot: KPISnapshot | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_response(self) -> KPIResponse:
        if not self.ok:
            return KPIResponse(state="failed", error=self.error)
        state = "empty" if self.snapshot.total_contracts == 0 else "ready"
        return KPIResponse(state=state, snapshot=self.snapshot)


class KPIService:
    def __init__(self, contracts: ContractStore, policy: ExpiryPolicy = DEFAULT_POLICY):
        self.contracts = contracts
        self.policy = policy

    async def load_snapshot(
        self,
        contract_filter: ContractFilter | None = None,
        now: date | datetime | None = None,
    ) -> AggregateResult:
        now = now or datetime.now(timezone.utc)
        try:
            rows = await self.contracts.scan_contracts(contract_filter)
        except StoreUnavailableError as exc:
            logger.error(f"KPI snapshot unavailable: {exc}")
            return AggregateResult(error=f"{AggregationSourceUnavailable.kind}: {exc}")

        search = contract_filter.search if contract_filter else None
        snapshot = aggregation.compute_aggregates(rows, now, search=search, policy=self.policy)
        logger.info(
            f"KPI snapshot computed: {snapshot.total_contracts} contracts, "
            f"{snapshot.total_risk_assessed} risk-assessed"
        )
        return AggregateResult(snapshot=snapshot)

    async def expiring(
        self,
        within_days: int,
        contract_filter: ContractFilter | None = None,
        now: date | datetime | None = None,
    ) -> list[ExpiringContract]:
        rows = await self._scan(contract_filter)
        return aggregation.expiring_contracts(rows, now, within_days=within_days, policy=self.policy)

    async def weekly_expiry(
        self,
        weeks: int,
        contract_filter: ContractFilter | None = None,
        now: date | datetime | None = None,
    ) -> list[int]:
        rows = await self._scan(contract_filter)
        return temporal.weekly_expiry_histogram(rows, now or datetime.now(timezone.utc), weeks)

    async def legal_kpi(
        self, contract_filter: ContractFilter | None = None, now: date | datetime | None = None
    ) -> LegalKPI:
        return aggregation.compute_legal_kpi(await self._scan(contract_filter), now)

    async def procurement_kpi(
        self, contract_filter: ContractFilter | None = None, now: date | datetime | None = None
    ) -> ProcurementKPI:
        return aggregation.compute_procurement_kpi(await self._scan(contract_filter), now)

    async def risk_distribution(self, contract_filter: ContractFilter | None = None) -> RiskDistribution:
        return aggregation.risk_distribution(await self._scan(contract_filter))

    async def _scan(self, contract_filter: ContractFilter | None) -> list[Contract]:
        try:
            return await self.contracts.scan_contracts(contract_filter)
        except StoreUnavailableError as exc:
            logger.error(f"Dashboard source unavailable: {exc}")
            raise AggregationSourceUnavailable(str(exc)) from exc
