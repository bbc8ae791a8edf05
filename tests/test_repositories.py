"""
SQL built by the SQLAlchemy repositories, checked without a database.
"""

from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from pactflow.models import Contract, LegalNote, LifecycleEntry
from pactflow.repositories.base import ContractFilter
from pactflow.repositories.contract_repo import ContractRepository, like_pattern


class TestSearchPattern:
    def test_wildcards_in_the_search_are_literal(self):
        assert like_pattern("_") == "%\\_%"
        assert like_pattern(" 50%_off ") == "%50\\%\\_off%"
        assert like_pattern("a\\b") == "%a\\\\b%"

    def test_scan_filter_escapes_and_declares_the_escape_char(self):
        stmt = ContractRepository._apply_filter(select(Contract), ContractFilter(search="_"))
        compiled = stmt.compile(dialect=postgresql.dialect())

        assert "ESCAPE" in str(compiled)
        assert set(compiled.params.values()) == {"%\\_%"}


class TestAuditTimestamps:
    """History is ordered by these columns, so they must advance within one transaction."""

    def test_defaults_use_the_statement_clock(self):
        for column in (
            LifecycleEntry.__table__.c.started_at,
            LegalNote.__table__.c.created_at,
            Contract.__table__.c.created_at,
        ):
            assert str(column.server_default.arg) == "clock_timestamp()"
