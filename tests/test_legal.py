"""Tests for legal documents, flattening and legal profiles."""

import json

import pytest

from quote_enhancer.domain.models import FormData, QuoteType
from quote_enhancer.legal import (
    LegalDataService,
    LegalProfileService,
    country_name_for,
    flatten,
    flatten_for_quote,
    resolve_country_code,
)
from quote_enhancer.legal.flattener import MAX_QUOTE_TEXT_LENGTH, NO_DATA_TEXT, TRUNCATION_MARKER

from tests.helpers import load_fixture_documents


# ============================================================================
# Countries
# ============================================================================


class TestCountries:
    """Tests for country name and code resolution."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Brazil", "BR"),
            ("  portugal ", "PT"),
            ("uk", "GB"),
            ("United States of America", "US"),
            ("de", "DE"),
            ("Denmark", "DK"),
            ("Singapore", "SG"),
            ("Sweden", "SE"),
            ("el", "GR"),
            ("Ivory Coast", "CI"),
            ("Narnia", ""),
            ("zz", ""),
            ("", ""),
        ],
    )
    def test_resolve_country_code(self, value, expected):
        """Test names, aliases and codes; unknown names never guess a code."""
        assert resolve_country_code(value) == expected

    def test_country_name_for(self):
        """Test display names and the default fallback."""
        assert country_name_for("br") == "Brazil"
        assert country_name_for("GB") == "United Kingdom"
        assert country_name_for("ZZ") == "ZZ"
        assert country_name_for("ZZ", default="Elsewhere") == "Elsewhere"


# ============================================================================
# LegalDataService
# ============================================================================


class TestLegalDataService:
    """Tests for document loading and caching."""

    def test_get_country_data(self, legal_data):
        """Test the first result record is returned."""
        record = legal_data.get_country_data("br")

        assert record["country"] == "Brazil"
        assert "termination" in record["data"]

    def test_get_country_core_data(self, legal_data):
        """Test only the data section is returned."""
        core = legal_data.get_country_core_data("PT")

        assert core["termination"]["notice_period"] == "30 days"

    def test_missing_country(self, legal_data):
        """Test that a missing document yields None."""
        assert legal_data.get_country_data("ZZ") is None
        assert legal_data.get_country_core_data("ZZ") is None

    def test_alias_resolution(self, tmp_path):
        """Test that UK resolves to the GB document."""
        (tmp_path / "papaya_global_data_GB.json").write_text(
            json.dumps({"results": [{"country": "United Kingdom", "data": {"termination": {}}}]})
        )
        service = LegalDataService(tmp_path)

        assert service.resolve_code("uk") == "GB"
        assert service.get_country_data("UK")["country"] == "United Kingdom"

    def test_payload_without_results(self, tmp_path):
        """Test that a bare payload is used as the record."""
        (tmp_path / "papaya_global_data_MX.json").write_text(json.dumps({"data": {"payroll": {}}}))

        record = LegalDataService(tmp_path).get_country_data("MX")

        assert record == {"data": {"payroll": {}}}

    def test_unreadable_document(self, tmp_path):
        """Test that invalid JSON yields None."""
        (tmp_path / "papaya_global_data_MX.json").write_text("{not json")

        assert LegalDataService(tmp_path).get_country_data("MX") is None

    def test_documents_are_cached_until_cleared(self, legal_data, legal_data_dir):
        """Test that clear_cache is the only way to drop a loaded document."""
        assert legal_data.get_country_data("BR") is not None
        (legal_data_dir / "papaya_global_data_BR.json").unlink()

        assert legal_data.get_country_data("BR") is not None

        legal_data.clear_cache()
        assert legal_data.get_country_data("BR") is None

    def test_available_countries(self, legal_data):
        """Test sorted listing of country codes."""
        assert legal_data.available_countries() == ["BR", "DE", "PT"]

    def test_available_countries_missing_directory(self, tmp_path):
        """Test that a missing directory lists nothing."""
        assert LegalDataService(tmp_path / "absent").available_countries() == []

    def test_get_availability(self, legal_data):
        """Test section availability flags."""
        brazil = legal_data.get_availability("BR")
        germany = legal_data.get_availability("DE")

        assert brazil.termination and brazil.payroll and brazil.contributions
        assert brazil.common_benefits and brazil.remote_work
        assert not brazil.leave
        assert germany.contributions
        assert not germany.common_benefits
        assert not germany.remote_work
        assert not legal_data.get_availability("ZZ").termination


# ============================================================================
# Flattener
# ============================================================================


@pytest.fixture(scope="module")
def documents():
    """Fixture legal documents keyed by country code."""
    return load_fixture_documents()


class TestFlatten:
    """Tests for flatten and flatten_for_quote."""

    def test_flatten_keeps_every_section(self, documents):
        """Test full rendering of a document."""
        result = flatten({"country": "Brazil", "data": documents["BR"]["data"]})

        assert result.country == "Brazil"
        assert result.currency == "BRL"
        assert "EMPLOYEE_CONTRIBUTIONS:\n- INSS: 7.5% to 14%" in result.text
        assert "Payroll Cycle: Monthly" in result.text
        assert "Process: Written notice is required." in result.text
        assert "REMOTE_WORK_RULES:" in result.text

    def test_flatten_for_quote_keeps_cost_sections(self, documents):
        """Test that only cost-relevant sections are rendered."""
        result = flatten_for_quote({"country": "Portugal", "data": documents["PT"]["data"]})

        assert result.currency == "EUR"
        assert result.text.startswith("EMPLOYER_CONTRIBUTIONS:\n- Social Security: 23.75%")
        assert "14th Salary: Mandatory 14th salary" in result.text
        assert "Notice Period: 30 days" in result.text
        assert "EMPLOYEE_CONTRIBUTIONS" not in result.text
        assert "Payroll Cycle" not in result.text

    def test_empty_sections_are_omitted(self, documents):
        """Test that empty lists produce no section header."""
        result = flatten_for_quote(documents["DE"])

        assert "COMMON_BENEFITS" not in result.text
        assert result.currency is None
        assert result.country == "Unknown"

    @pytest.mark.parametrize("document", [None, {}, {"data": {}}])
    def test_no_data(self, document):
        """Test the placeholder text for empty documents."""
        assert flatten(document).text == NO_DATA_TEXT
        assert flatten_for_quote(document).text == NO_DATA_TEXT

    def test_truncation(self):
        """Test that quote text is capped with a marker."""
        document = {"data": {"common_benefits": ["x" * 1000 for _ in range(30)]}}

        text = flatten_for_quote(document).text

        assert len(text) == MAX_QUOTE_TEXT_LENGTH + len(TRUNCATION_MARKER)
        assert text.endswith(TRUNCATION_MARKER)

    def test_non_currency_codes_ignored(self):
        """Test that acronyms next to numbers are not taken as currencies."""
        document = {"data": {"common_benefits": ["25 PTO days", "100 MXN grocery voucher"]}}

        assert flatten(document).currency == "MXN"


# ============================================================================
# LegalProfileService
# ============================================================================


class TestLegalProfileService:
    """Tests for profile assembly and caching."""

    def test_profile_for_brazil(self, legal_data, brazil_form):
        """Test parsed requirements and summary text."""
        service = LegalProfileService(legal_data)

        profile = service.get_profile("BR", "Brazil", brazil_form)

        assert profile.country_code == "BR"
        assert profile.quote_type == QuoteType.ALL_INCLUSIVE
        assert profile.contract_months == 12
        assert profile.requirements.termination_costs.severance_months == 1
        assert "COUNTRY: Brazil" in profile.summary
        assert "MANDATORY_SALARIES: 13th=true; 14th=false" in profile.summary
        assert "13TH_MULTIPLIER_MONTHLY: 0.0833" in profile.summary
        assert "ALLOWANCES_AMOUNTS: transportation=50.0; currency=BRL" in profile.summary
        assert "STATUTORY_ONLY" not in profile.formulas

    def test_statutory_only_formulas(self, legal_data, brazil_form):
        """Test the statutory-only exclusion line."""
        profile = LegalProfileService(legal_data).get_profile(
            "BR", "Brazil", brazil_form, quote_type=QuoteType.STATUTORY_ONLY
        )

        assert "MODE: statutory-only" in profile.summary
        assert "STATUTORY_ONLY: exclude severance" in profile.formulas

    def test_employer_rates_in_summary(self, legal_data):
        """Test contribution rates are listed in key order."""
        form = FormData(country="Portugal", base_salary=2000, currency="EUR")

        profile = LegalProfileService(legal_data).get_profile("PT", "Portugal", form)

        assert "EMPLOYER_CONTRIBUTION_RATES: social_security=23.75%; work_accident_insurance=1.5%" in profile.summary

    def test_profiles_are_cached(self, legal_data, brazil_form):
        """Test that the same request shape returns the same object."""
        service = LegalProfileService(legal_data)

        first = service.get_profile("BR", "Brazil", brazil_form)
        second = service.get_profile("BR", "Brazil", brazil_form.model_copy(update={"base_salary": 9000}))
        other = service.get_profile("BR", "Brazil", brazil_form.model_copy(update={"contract_duration": 24}))

        assert first is second
        assert other is not first
        assert other.id != first.id

    def test_profile_id_is_stable(self, legal_data, brazil_form):
        """Test that separate services derive the same id."""
        first = LegalProfileService(legal_data).get_profile("BR", "Brazil", brazil_form)
        second = LegalProfileService(legal_data).get_profile("BR", "Brazil", brazil_form)

        assert first.id == second.id

    def test_missing_country(self, legal_data, brazil_form):
        """Test that no document yields no profile."""
        assert LegalProfileService(legal_data).get_profile("ZZ", "Nowhere", brazil_form) is None

    def test_clear_cache(self, legal_data, brazil_form):
        """Test that clearing rebuilds profiles."""
        service = LegalProfileService(legal_data)
        first = service.get_profile("BR", "Brazil", brazil_form)

        service.clear_cache()

        assert service.get_profile("BR", "Brazil", brazil_form) is not first
