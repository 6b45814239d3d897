"""Legal profile assembly.

A LegalProfile is the per-country, per-request-shape digest of mandatory
costs: parsed requirements plus a short textual summary and the formulas a
reasoning service is asked to follow. Profiles are cached by
(country code, employment type, contract months, quote type).
"""

from typing import Any, Dict, Optional

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from quote_enhancer.domain.exceptions import QuoteEnhancementError
from quote_enhancer.domain.legal import LegalProfile, LegalRequirements
from quote_enhancer.domain.models import FormData, QuoteType
from quote_enhancer.logging import get_logger
from quote_enhancer.utils.hashing import content_hash

from .documents import LegalDataService
from .parsing import extract_legal_requirements

logger = get_logger(__name__, component="legal")


class ProfileRenderError(QuoteEnhancementError):
    """Raised when a legal profile template fails to render."""


class ProfileRenderer:
    """Renders legal profile summary and formula text with Jinja2.

    Templates live in the quote_enhancer.legal ``templates`` package
    directory and are cached by the Jinja2 environment after first load.
    """

    def __init__(
        self,
        template_dir: str = "templates",
        summary_template: str = "summary.txt.j2",
        formulas_template: str = "formulas.txt.j2",
    ):
        self.summary_template_name = summary_template
        self.formulas_template_name = formulas_template
        self.env = Environment(
            loader=PackageLoader("quote_enhancer.legal", template_dir),
            autoescape=False,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render_summary(self, context: Dict[str, Any]) -> str:
        return self._render(self.summary_template_name, context)

    def render_formulas(self, context: Dict[str, Any]) -> str:
        return self._render(self.formulas_template_name, context)

    def _render(self, name: str, context: Dict[str, Any]) -> str:
        try:
            return self.env.get_template(name).render(context).strip()
        except TemplateError as e:
            logger.error(
                f"Legal profile template '{name}' failed to render: {e}",
                extra={"event": "legal.profile.render_failed", "template": name},
            )
            raise ProfileRenderError(f"Template rendering failed: {e}") from e


def _summary_context(
    country_name: str,
    quote_type: QuoteType,
    contract_months: int,
    employment_type: str,
    requirements: LegalRequirements,
) -> Dict[str, Any]:
    allowances = requirements.allowances
    allowance_parts = [
        f"{label}={amount}"
        for label, amount in (
            ("transportation", allowances.transportation_amount),
            ("remote_work", allowances.remote_work_amount),
            ("meal_vouchers", allowances.meal_voucher_amount),
        )
        if amount is not None
    ]
    if allowance_parts and allowances.currency:
        allowance_parts.append(f"currency={allowances.currency}")

    return {
        "country": country_name,
        "quote_type": quote_type.value,
        "contract_months": contract_months,
        "employment_type": employment_type,
        "termination": requirements.termination_costs,
        "salaries": requirements.mandatory_salaries,
        "vacation_bonus_percentage": requirements.bonuses.vacation_bonus_percentage,
        "allowances": allowance_parts,
        "employer_rates": sorted(requirements.contributions.employer_rates.items()),
    }


class LegalProfileService:
    """Builds and caches LegalProfile instances.

    Attributes:
        legal_data: Source of country legal documents
        renderer: Template renderer for summary and formula text
    """

    def __init__(self, legal_data: LegalDataService, renderer: Optional[ProfileRenderer] = None):
        self.legal_data = legal_data
        self.renderer = renderer or ProfileRenderer()
        self._profiles: Dict[str, LegalProfile] = {}

    @staticmethod
    def _cache_key(country_code: str, employment_type: str, contract_months: int, quote_type: QuoteType) -> str:
        return f"{country_code}|{employment_type}|{contract_months}|{quote_type.value}".lower()

    def get_profile(
        self,
        country_code: str,
        country_name: str,
        form_data: FormData,
        quote_type: Optional[QuoteType] = None,
    ) -> Optional[LegalProfile]:
        """Build or return the cached legal profile for a request shape.

        Args:
            country_code: ISO country code
            country_name: Display name used in the summary text
            form_data: Request data providing employment type and contract length
            quote_type: Override for form_data.quote_type

        Returns:
            LegalProfile, or None when no legal document exists for the country
        """
        quote_type = quote_type or form_data.quote_type
        employment_type = form_data.employment_type
        contract_months = form_data.contract_duration

        key = self._cache_key(country_code, employment_type, contract_months, quote_type)
        cached = self._profiles.get(key)
        if cached is not None:
            return cached

        core = self.legal_data.get_country_core_data(country_code)
        if core is None:
            logger.warning(
                f"No legal document for country {country_code}",
                extra={"event": "legal.profile.missing", "country_code": country_code},
            )
            return None

        requirements = extract_legal_requirements(core)
        summary = self.renderer.render_summary(
            _summary_context(country_name, quote_type, contract_months, employment_type, requirements)
        )
        formulas = self.renderer.render_formulas({"quote_type": quote_type.value})

        profile = LegalProfile(
            id=content_hash([country_code, employment_type, contract_months, quote_type.value, summary]),
            country_code=country_code,
            country_name=country_name,
            quote_type=quote_type,
            employment_type=employment_type,
            contract_months=contract_months,
            requirements=requirements,
            summary=summary,
            formulas=formulas,
        )
        self._profiles[key] = profile

        logger.info(
            f"Built legal profile for {country_code} ({quote_type.value}, {contract_months} months)",
            extra={"event": "legal.profile.built", "country_code": country_code, "profile_id": profile.id},
        )
        return profile

    def clear_cache(self) -> None:
        """Drop all cached profiles."""
        self._profiles.clear()
