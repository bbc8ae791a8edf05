"""
KPI service tests: a failed load must never look like an empty portfolio.
"""

import asyncio

import pytest

from pactflow.exceptions import AggregationSourceUnavailable
from pactflow.repositories.base import ContractFilter
from pactflow.services.kpi_service import KPIService
from pactflow.services.temporal import ExpiryPolicy
from tests.fakes import InMemoryContractStore, UnavailableContractStore, days_from


class TestLoadSnapshot:
    def test_ready(self, contract_store, today):
        contract_store.add(status="Active", risk="High", end_date=days_from(today, 10))
        contract_store.add(status="Draft", risk="Low")

        result = asyncio.run(KPIService(contract_store).load_snapshot(now=today))

        assert result.ok
        assert result.snapshot.total_contracts == 2
        response = result.to_response()
        assert response.state == "ready"
        assert response.error is None

    def test_empty_is_not_an_error(self, today):
        result = asyncio.run(KPIService(InMemoryContractStore()).load_snapshot(now=today))

        assert result.ok
        assert result.to_response().state == "empty"
        assert result.snapshot.total_contracts == 0

    def test_unavailable_store_is_a_failure_not_zeroes(self, today):
        result = asyncio.run(KPIService(UnavailableContractStore()).load_snapshot(now=today))

        assert not result.ok
        assert result.snapshot is None
        response = result.to_response()
        assert response.state == "failed"
        assert response.snapshot is None
        assert response.error.startswith("aggregation_source_unavailable")

    def test_search_and_filter_apply_to_every_figure(self, contract_store, today):
        contract_store.add(name="Cloud hosting", risk="High")
        contract_store.add(name="Catering", risk="Low")

        result = asyncio.run(
            KPIService(contract_store).load_snapshot(ContractFilter(search="cloud"), now=today)
        )

        assert result.snapshot.total_contracts == 1
        assert result.snapshot.high_risk_percentage == 100

    def test_configured_windows(self, contract_store, today):
        contract_store.add(end_date=days_from(today, 10))
        policy = ExpiryPolicy(windows=(14, 120))

        snapshot = asyncio.run(KPIService(contract_store, policy).load_snapshot(now=today)).snapshot

        assert snapshot.expiring_by_window == {14: 1, 120: 1}
        assert snapshot.expiring_30_days == 0


class TestDashboardViews:
    def test_views_raise_when_the_store_is_down(self, today):
        service = KPIService(UnavailableContractStore())
        for call in (
            service.expiring(90, now=today),
            service.weekly_expiry(13, now=today),
            service.legal_kpi(now=today),
            service.procurement_kpi(now=today),
            service.risk_distribution(),
        ):
            with pytest.raises(AggregationSourceUnavailable):
                asyncio.run(call)

    def test_weekly_expiry(self, contract_store, today):
        contract_store.add(end_date=days_from(today, 3))
        contract_store.add(end_date=days_from(today, 10))

        counts = asyncio.run(KPIService(contract_store).weekly_expiry(4, now=today))

        assert counts == [1, 1, 0, 0]

    def test_risk_filter(self, contract_store):
        contract_store.add(risk="High", status="Submitted")
        contract_store.add(risk="High", status="Active")
        contract_store.add(risk="Low", status="Active")

        dist = asyncio.run(
            KPIService(contract_store).risk_distribution(ContractFilter(status="active"))
        )

        assert (dist.high, dist.low, dist.total) == (1, 1, 2)
