"""Shared fixtures for quote enhancer tests."""

from datetime import datetime, timezone

import pytest

from quote_enhancer.cache.service import EnhancementCache
from quote_enhancer.domain.models import FormData, NormalizedQuote
from quote_enhancer.enhancement.engine import EnhancementEngine
from quote_enhancer.legal.documents import LegalDataService
from quote_enhancer.logging.context import clear_log_context

from tests.helpers import write_legal_documents

FIXED_NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_log_context():
    """Clear logging context around every test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def fixed_clock():
    """Clock returning a constant UTC timestamp."""
    return lambda: FIXED_NOW


@pytest.fixture
def legal_data_dir(tmp_path):
    """Directory holding every fixture legal document."""
    return write_legal_documents(tmp_path / "legal")


@pytest.fixture
def legal_data(legal_data_dir):
    """LegalDataService over the fixture documents."""
    return LegalDataService(legal_data_dir)


@pytest.fixture
def brazil_form():
    """Form data for a 12-month full-time contract in Brazil."""
    return FormData(
        country="Brazil",
        base_salary=1000,
        currency="BRL",
        contract_duration=12,
        employment_type="full-time",
    )


@pytest.fixture
def deel_brazil_payload():
    """Raw Deel quote for a 1,000 BRL salary (monthly total 1,500 after fee)."""
    return {
        "salary": "1,000.00",
        "currency": "BRL",
        "country": "Brazil",
        "total_costs": "1,600.00",
        "deel_fee": "100.00",
        "severance_accural": "0.00",
        "employer_costs": "500.00",
        "costs": [
            {"name": "INSS Employer", "amount": "500.00", "frequency": "monthly"},
        ],
    }


@pytest.fixture
def normalized_brazil_quote():
    """Normalized Oyster-style quote with no extractable inclusions."""
    return NormalizedQuote(
        provider="oyster",
        base_cost=1000.0,
        currency="BRL",
        country="Brazil",
        monthly_total=1400.0,
        breakdown={},
        original_response={},
    )


@pytest.fixture
def engine(legal_data, fixed_clock):
    """Deterministic engine with no reasoning service or currency backend."""
    return EnhancementEngine(legal_data, cache=EnhancementCache(), clock=fixed_clock)
