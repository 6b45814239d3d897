"""Enhancement engine orchestrating normalization, legal data and deltas.

Pipeline per provider quote:
1. Return the cached result when the same request was enhanced within the TTL
2. Normalize the quote (tagged input: raw payloads are normalized, normalized
   quotes pass through)
3. Resolve the legal profile for the country and request shape
4. Build the legal baseline and extract provider inclusions concurrently
5. Compute per-benefit deltas (reasoning service first when configured,
   deterministic calculator as fallback)
6. Merge, add local office costs, apply the quote-type filter
7. Total, validate invariants, cache and return

The engine owns its cache and monitor; construct one per process and pass
it to callers.
"""

import asyncio
import math
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from quote_enhancer.cache.service import EnhancementCache, quote_content_hash
from quote_enhancer.config.models import EnhancementConfig, EnhancerConfig
from quote_enhancer.currency.base import CurrencyProvider
from quote_enhancer.domain.exceptions import QuoteEnhancementError
from quote_enhancer.domain.legal import Allowances, LegalBaseline, LegalProfile, LegalRequirements
from quote_enhancer.domain.models import (
    TERMINATION_KINDS,
    BenefitKind,
    EnhancedQuote,
    EnhancementErrorRecord,
    EnhancementSource,
    FormData,
    MonthlyCostBreakdown,
    MultiProviderResult,
    NormalizedQuote,
    ProviderKind,
    QuoteInput,
    QuoteType,
    RawProviderQuote,
    StandardizedBenefitData,
)
from quote_enhancer.extraction.extractor import ProviderInclusionsExtractor
from quote_enhancer.legal.countries import country_name_for, resolve_country_code
from quote_enhancer.legal.documents import LegalDataService
from quote_enhancer.legal.flattener import flatten_for_quote
from quote_enhancer.legal.profile import LegalProfileService
from quote_enhancer.logging import get_logger
from quote_enhancer.logging.context import log_context, new_request_id
from quote_enhancer.normalizers.exceptions import MalformedQuoteError
from quote_enhancer.normalizers.factory import normalize, resolve_provider
from quote_enhancer.normalizers.quotes import validate_normalized_quote
from quote_enhancer.utils.money import round_money
from quote_enhancer.utils.timestamps import utc_now

from .calculator import DeltaResult, build_baseline, compute_deltas
from .comparison import generate_comparison
from .exceptions import InvalidEnhancedQuoteError, NoLegalProfileError
from .local_office import build_local_office_record
from .merge import excluded_for_quote_type, filter_for_quote_type, merge_records, total_enhancement
from .monitor import PerformanceMonitor
from .reasoning import ReasoningService
from .strategies import (
    BaselineRequest,
    DeltaRequest,
    DeterministicBaselineStrategy,
    DeterministicDeltaStrategy,
    ReasoningBaselineStrategy,
    ReasoningDeltaStrategy,
    Strategy,
    run_strategies,
)

logger = get_logger(__name__, component="enhancement")

_QUOTE_ADAPTER: TypeAdapter = TypeAdapter(QuoteInput)

TOTAL_TOLERANCE = 0.01
ALLOWANCE_FIELDS = (
    ("meal_voucher_amount", "meal_voucher_mandatory", "meal voucher"),
    ("transportation_amount", "transportation_mandatory", "transportation"),
    ("remote_work_amount", "remote_work_mandatory", "remote work"),
)


class EnhancementEngine:
    """Enhances provider quotes with the legally required costs they omit.

    Attributes:
        legal_data: Source of country legal documents
        reasoning_service: Optional external reasoning service
        currency_provider: Optional backend used to align legal allowance currencies
        cache: Result, extraction and baseline caches
        settings: Retry and fallback policies
        monitor: Request timing and error tracking
    """

    def __init__(
        self,
        legal_data: LegalDataService,
        *,
        reasoning_service: Optional[ReasoningService] = None,
        currency_provider: Optional[CurrencyProvider] = None,
        cache: Optional[EnhancementCache] = None,
        settings: Optional[EnhancementConfig] = None,
        extractor: Optional[ProviderInclusionsExtractor] = None,
        profile_service: Optional[LegalProfileService] = None,
        monitor: Optional[PerformanceMonitor] = None,
        clock: Callable = utc_now,
    ) -> None:
        self.legal_data = legal_data
        self.reasoning_service = reasoning_service
        self.currency_provider = currency_provider
        self.cache = cache or EnhancementCache()
        self.settings = settings or EnhancementConfig()
        self.extractor = extractor or ProviderInclusionsExtractor(clock=clock)
        self.profile_service = profile_service or LegalProfileService(legal_data)
        self.monitor = monitor or PerformanceMonitor(clock=clock)
        self._clock = clock

    @classmethod
    def from_config(
        cls,
        config: EnhancerConfig,
        reasoning_service: Optional[ReasoningService] = None,
        currency_provider: Optional[CurrencyProvider] = None,
    ) -> "EnhancementEngine":
        """Build an engine from loaded configuration."""
        legal_data = LegalDataService(
            config.legal_data.data_dir,
            file_prefix=config.legal_data.file_prefix,
            aliases=config.legal_data.aliases,
        )
        return cls(
            legal_data,
            reasoning_service=reasoning_service,
            currency_provider=currency_provider,
            cache=EnhancementCache.from_config(config.cache),
            settings=config.enhancement,
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def enhance_quote(
        self,
        provider: Union[str, ProviderKind],
        quote: Union[QuoteInput, Mapping[str, Any]],
        form_data: Union[FormData, Mapping[str, Any]],
        quote_type: Optional[Union[str, QuoteType]] = None,
    ) -> EnhancedQuote:
        """Enhance one provider quote.

        Deltas come from the reasoning service when one is configured, with
        the deterministic calculator as fallback.

        Args:
            provider: Provider kind
            quote: RawProviderQuote, NormalizedQuote, a tagged mapping, or a raw payload mapping
            form_data: Request data
            quote_type: Override for form_data.quote_type

        Returns:
            Validated EnhancedQuote (the cached instance on a cache hit)

        Raises:
            UnsupportedProviderError: Unknown provider
            MalformedQuoteError: Quote lacks provider, currency, country or a positive total
            NoLegalProfileError: No legal document for the country
            InvalidEnhancedQuoteError: Computed result violates its invariants
        """
        return await self._enhance(provider, quote, form_data, quote_type, direct=False)

    async def enhance_quote_direct(
        self,
        provider: Union[str, ProviderKind],
        quote: Union[QuoteInput, Mapping[str, Any]],
        form_data: Union[FormData, Mapping[str, Any]],
        quote_type: Optional[Union[str, QuoteType]] = None,
    ) -> EnhancedQuote:
        """Enhance one provider quote using a shared legal baseline pre-pass.

        The baseline is computed once per (country, salary, contract, quote
        type, employment type, currency) and shared by concurrent callers.
        Same contract and errors as enhance_quote().
        """
        return await self._enhance(provider, quote, form_data, quote_type, direct=True)

    async def enhance_all_providers(
        self,
        provider_quotes: Mapping[str, Any],
        form_data: Union[FormData, Mapping[str, Any]],
        quote_type: Optional[Union[str, QuoteType]] = None,
    ) -> MultiProviderResult:
        """Enhance every provider quote concurrently.

        One provider's failure never aborts the others; it is recorded under
        ``errors[provider]`` and excluded from the comparison.

        Args:
            provider_quotes: Provider name to quote input
            form_data: Request data shared by every provider
            quote_type: Override for form_data.quote_type

        Returns:
            MultiProviderResult with enhancements, comparison, errors and
            processing time in milliseconds
        """
        started = time.perf_counter()
        form = self._coerce_form(form_data)
        providers = list(provider_quotes.items())

        logger.info(
            f"Enhancing {len(providers)} provider quotes",
            extra={"event": "enhancement.batch.started", "providers": [name for name, _ in providers]},
        )

        with log_context(request_id=new_request_id()):
            outcomes = await asyncio.gather(
                *(self.enhance_quote_direct(name, quote, form, quote_type) for name, quote in providers),
                return_exceptions=True,
            )

        enhancements: Dict[str, EnhancedQuote] = {}
        errors: Dict[str, List[EnhancementErrorRecord]] = {}
        for (name, _), outcome in zip(providers, outcomes):
            if isinstance(outcome, EnhancedQuote):
                enhancements[name] = outcome
            elif isinstance(outcome, Exception):
                errors[name] = [self._error_record(name, outcome)]
                logger.warning(
                    f"Enhancement failed for {name}: {outcome}",
                    extra={
                        "event": "enhancement.batch.provider_failed",
                        "provider": name,
                        "error_code": errors[name][0].code,
                    },
                )
            else:
                raise outcome

        processing_time = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            f"Enhanced {len(enhancements)}/{len(providers)} providers in {processing_time}ms",
            extra={
                "event": "enhancement.batch.completed",
                "succeeded": len(enhancements),
                "failed": len(errors),
                "processing_time_ms": processing_time,
            },
        )

        return MultiProviderResult(
            enhancements=enhancements,
            comparison=generate_comparison(enhancements),
            processing_time=processing_time,
            errors=errors,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Return monitor statistics and cache statistics."""
        stats = self.monitor.get_stats()
        stats["cache"] = vars(self.cache.get_stats())
        return stats

    def clear_cache(self) -> None:
        """Drop cached results, extractions, baselines, profiles and documents."""
        self.cache.clear()
        self.profile_service.clear_cache()
        self.legal_data.clear_cache()

    async def health_check(self) -> bool:
        """True when legal documents exist and the reasoning service (if any) is healthy."""
        countries = await asyncio.to_thread(self.legal_data.available_countries)
        if not countries:
            logger.warning("No legal documents available", extra={"event": "enhancement.health.no_legal_data"})
            return False
        if self.reasoning_service is None:
            return True
        try:
            return bool(await self.reasoning_service.health_check())
        except Exception as e:
            logger.warning(
                f"Reasoning service health check failed: {e}",
                extra={"event": "enhancement.health.reasoning_failed"},
            )
            return False

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _enhance(
        self,
        provider: Union[str, ProviderKind],
        quote: Any,
        form_data: Union[FormData, Mapping[str, Any]],
        quote_type: Optional[Union[str, QuoteType]],
        direct: bool,
    ) -> EnhancedQuote:
        started = time.perf_counter()
        kind = resolve_provider(provider)
        form = self._coerce_form(form_data)
        effective_type = QuoteType(quote_type) if quote_type else form.quote_type

        with log_context(provider=kind.value, quote_type=effective_type.value):
            try:
                resolved = self._resolve_quote(kind, quote)
                cache_key = self.cache.result_key(kind.value, form, effective_type, quote_content_hash(resolved))

                cached = self.cache.get(cache_key)
                if cached is not None:
                    logger.info(
                        f"Cache hit for {kind.value}",
                        extra={"event": "enhancement.quote.cache_hit"},
                    )
                    self.monitor.record_request(kind.value, (time.perf_counter() - started) * 1000, cache_hit=True)
                    return cached

                result = await self._compute(kind, resolved, form, effective_type, direct)
            except Exception as e:
                self.monitor.record_error(kind.value, getattr(e, "code", QuoteEnhancementError.code), str(e))
                raise

            self.cache.set(cache_key, result)
            duration_ms = (time.perf_counter() - started) * 1000
            self.monitor.record_request(kind.value, duration_ms)
            logger.info(
                f"Enhanced {kind.value} quote: {result.base_quote.monthly_total} + "
                f"{result.total_enhancement} = {result.final_total} {result.base_currency}",
                extra={
                    "event": "enhancement.quote.completed",
                    "total_enhancement": result.total_enhancement,
                    "final_total": result.final_total,
                    "duration_ms": round(duration_ms, 1),
                },
            )
            return result

    async def _compute(
        self,
        kind: ProviderKind,
        quote: Union[RawProviderQuote, NormalizedQuote],
        form: FormData,
        quote_type: QuoteType,
        direct: bool,
    ) -> EnhancedQuote:
        normalized = quote if isinstance(quote, NormalizedQuote) else normalize(kind, quote.payload)
        if not validate_normalized_quote(normalized):
            raise MalformedQuoteError(
                f"Quote from {kind.value} is missing provider, currency or country, or has no positive monthly total",
                provider=kind.value,
            )

        country_code = resolve_country_code(form.country)
        if not country_code:
            raise NoLegalProfileError(
                f"Unknown country: {form.country!r}",
                provider=kind.value,
            )
        country_name = country_name_for(country_code, default=form.country)
        months = form.contract_duration
        warnings: List[str] = []

        with log_context(country_code=country_code):
            profile = await asyncio.to_thread(
                self.profile_service.get_profile, country_code, country_name, form, quote_type
            )
            if profile is None:
                raise NoLegalProfileError(
                    f"No legal data available for country {country_code}",
                    provider=kind.value,
                    country_code=country_code,
                )

            base_salary = self._base_salary(form, normalized, warnings)
            baseline_request = await self._baseline_request(profile, base_salary, normalized.currency, warnings)
            deterministic_baseline = build_baseline(
                baseline_request.requirements,
                base_salary,
                months,
                quote_type,
                country_code=country_code,
                currency=normalized.currency,
                severance_fallback_months=self.settings.severance_fallback_months,
            )

            if direct:
                external, extracted = await self._direct_deltas(
                    kind, normalized, form, quote_type, baseline_request, deterministic_baseline
                )
            else:
                extracted = await self._extract(kind, normalized)
                external = await self._reasoning_deltas(
                    kind, normalized, quote_type, months, extracted, profile, deterministic_baseline, warnings
                )

            deterministic = compute_deltas(deterministic_baseline, extracted, months)
            return self._assemble(kind, normalized, form, quote_type, extracted, external, deterministic, warnings)

    async def _direct_deltas(
        self,
        kind: ProviderKind,
        normalized: NormalizedQuote,
        form: FormData,
        quote_type: QuoteType,
        baseline_request: BaselineRequest,
        deterministic_baseline: LegalBaseline,
    ) -> Tuple[Optional[DeltaResult], StandardizedBenefitData]:
        key = self.cache.baseline_key(
            baseline_request.profile.country_code,
            baseline_request.base_salary,
            form.contract_duration,
            quote_type,
            form.employment_type,
        ) + f"|{normalized.currency}"

        baseline, extracted = await asyncio.gather(
            self.cache.get_or_create_baseline(key, lambda: self._run_baseline_strategies(baseline_request)),
            self._extract(kind, normalized),
        )

        if baseline.source != "reasoning":
            # Deterministic deltas are computed by the caller from the same baseline
            return DeltaResult(warnings=list(baseline.warnings)) if baseline.warnings else None, extracted

        delta = compute_deltas(baseline, extracted, form.contract_duration, source=EnhancementSource.REASONING)
        return delta, extracted

    async def _run_baseline_strategies(self, request: BaselineRequest) -> LegalBaseline:
        strategies: List[Strategy] = []
        if self.reasoning_service is not None:
            strategies.append(ReasoningBaselineStrategy(self.reasoning_service, self.settings.reasoning_max_attempts))
        strategies.append(DeterministicBaselineStrategy())

        result, failures = await run_strategies(strategies, request)
        baseline = result.value
        if failures:
            baseline = baseline.model_copy(
                update={"warnings": [*baseline.warnings, "Reasoning service unavailable; used deterministic legal baseline"]}
            )
        return baseline

    async def _reasoning_deltas(
        self,
        kind: ProviderKind,
        normalized: NormalizedQuote,
        quote_type: QuoteType,
        months: int,
        extracted: StandardizedBenefitData,
        profile: LegalProfile,
        baseline: LegalBaseline,
        warnings: List[str],
    ) -> Optional[DeltaResult]:
        if self.reasoning_service is None:
            return None

        request = DeltaRequest(
            provider=kind.value,
            quote=normalized,
            quote_type=quote_type,
            contract_months=months,
            extracted=extracted,
            profile=profile,
            baseline=baseline,
        )
        result, failures = await run_strategies(
            [ReasoningDeltaStrategy(self.reasoning_service, self.settings.reasoning_max_attempts), DeterministicDeltaStrategy()],
            request,
        )
        if failures:
            warnings.append("Reasoning service unavailable; used deterministic calculation")
        delta = result.value
        return delta if delta.source == EnhancementSource.REASONING else None

    async def _extract(self, kind: ProviderKind, normalized: NormalizedQuote) -> StandardizedBenefitData:
        cached = self.cache.get_extraction(kind.value, normalized.original_response)
        if cached is not None:
            return cached
        extracted = self.extractor.extract(kind, normalized)
        self.cache.set_extraction(kind.value, normalized.original_response, extracted)
        return extracted

    async def _baseline_request(
        self, profile: LegalProfile, base_salary: float, currency: str, warnings: List[str]
    ) -> BaselineRequest:
        core = await asyncio.to_thread(self.legal_data.get_country_core_data, profile.country_code)
        flattened = flatten_for_quote(core)
        legal_currency = profile.requirements.allowances.currency or flattened.currency
        requirements = await self._align_allowances(profile.requirements, legal_currency, currency, warnings)
        return BaselineRequest(
            profile=profile,
            requirements=requirements,
            base_salary=base_salary,
            currency=currency,
            legal_text=flattened.text,
            legal_currency=legal_currency,
            severance_fallback_months=self.settings.severance_fallback_months,
        )

    async def _align_allowances(
        self,
        requirements: LegalRequirements,
        legal_currency: Optional[str],
        quote_currency: str,
        warnings: List[str],
    ) -> LegalRequirements:
        """Convert legally defined allowance amounts into the quote currency.

        Allowances whose conversion fails, or that cannot be converted
        because no currency provider is configured, are dropped with a
        warning.
        """
        allowances = requirements.allowances
        present = [(amount_field, flag, label) for amount_field, flag, label in ALLOWANCE_FIELDS if getattr(allowances, amount_field)]
        if not present or not legal_currency or legal_currency.upper() == quote_currency.upper():
            return requirements

        update: Dict[str, Any] = {"currency": quote_currency}
        for amount_field, flag, label in present:
            amount = getattr(allowances, amount_field)
            converted: Optional[float] = None
            if self.currency_provider is not None:
                result = await self.currency_provider.convert_currency(amount, legal_currency, quote_currency)
                if result.success and result.data is not None and result.data.target_amount >= 0:
                    converted = round_money(result.data.target_amount)

            if converted is None:
                update[amount_field] = None
                update[flag] = False
                warnings.append(
                    f"Legal {label} allowance of {amount} {legal_currency} skipped: "
                    f"could not convert to {quote_currency}"
                )
            else:
                update[amount_field] = converted

        logger.debug(
            f"Aligned legal allowances from {legal_currency} to {quote_currency}",
            extra={"event": "enhancement.allowances.aligned", "legal_currency": legal_currency},
        )
        return requirements.model_copy(update={"allowances": Allowances(**{**allowances.model_dump(), **update})})

    def _assemble(
        self,
        kind: ProviderKind,
        normalized: NormalizedQuote,
        form: FormData,
        quote_type: QuoteType,
        extracted: StandardizedBenefitData,
        external: Optional[DeltaResult],
        deterministic: DeltaResult,
        warnings: List[str],
    ) -> EnhancedQuote:
        warnings = [*warnings, *deterministic.warnings]
        if external is not None:
            warnings.extend(w for w in external.warnings if w not in warnings)

        records = merge_records(external.records if external else None, deterministic.records)

        local_record, local_warnings = build_local_office_record(
            form.local_office_info, form.currency, normalized.currency, form.contract_duration
        )
        warnings.extend(local_warnings)
        if local_record is not None:
            records[BenefitKind.LOCAL_OFFICE_BENEFITS] = local_record

        explanations: List[str] = []
        excluded = [kind_.value for kind_, record in records.items() if excluded_for_quote_type(record, quote_type)]
        if excluded:
            explanations.append(f"Excluded in {quote_type.value} mode: {', '.join(excluded)}")
        records = filter_for_quote_type(records, quote_type)

        for record in records.values():
            if record.is_already_included:
                explanations.append(f"{record.kind.value}: already included by provider")
            elif record.monthly_amount > 0:
                explanations.append(f"{record.kind.value}: {record.explanation}")

        total = round_money(total_enhancement(records.values()))
        final_total = round_money(normalized.monthly_total + total)

        overlap = external.overlap if external is not None and external.records else deterministic.overlap

        enhanced = EnhancedQuote(
            provider=kind.value,
            base_quote=normalized,
            quote_type=quote_type,
            enhancements=records,
            total_enhancement=total,
            final_total=final_total,
            monthly_cost_breakdown=MonthlyCostBreakdown(
                base_cost=normalized.monthly_total,
                enhancements=total,
                total=final_total,
            ),
            overall_confidence=self._overall_confidence(records, extracted, external),
            explanations=explanations,
            warnings=warnings,
            overlap_analysis=overlap,
            calculated_at=self._clock(),
            base_currency=normalized.currency,
        )
        validate_enhanced_quote(enhanced)
        return enhanced

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce_form(form_data: Union[FormData, Mapping[str, Any]]) -> FormData:
        if isinstance(form_data, FormData):
            return form_data
        return FormData.model_validate(dict(form_data))

    @staticmethod
    def _resolve_quote(kind: ProviderKind, quote: Any) -> Union[RawProviderQuote, NormalizedQuote]:
        """Resolve tagged input; untagged mappings are raw provider payloads."""
        if isinstance(quote, (RawProviderQuote, NormalizedQuote)):
            return quote
        if isinstance(quote, Mapping) and "kind" in quote:
            try:
                return _QUOTE_ADAPTER.validate_python(dict(quote))
            except ValidationError as e:
                raise MalformedQuoteError(
                    f"Invalid tagged quote for {kind.value}: {e.error_count()} validation errors",
                    provider=kind.value,
                ) from e
        payload = dict(quote) if isinstance(quote, Mapping) else {}
        return RawProviderQuote(provider=kind, payload=payload)

    @staticmethod
    def _base_salary(form: FormData, quote: NormalizedQuote, warnings: List[str]) -> float:
        """Monthly base salary in the quote currency."""
        if form.currency and form.currency != quote.currency and quote.base_cost > 0:
            warnings.append(
                f"Salary currency {form.currency} differs from quote currency {quote.currency}; "
                f"using the quoted base salary"
            )
            return quote.base_cost
        return form.base_salary or quote.base_cost

    @staticmethod
    def _overall_confidence(
        records: Mapping[BenefitKind, Any],
        extracted: StandardizedBenefitData,
        external: Optional[DeltaResult],
    ) -> float:
        if external is not None and external.confidence is not None:
            return round(external.confidence, 4)
        if not records:
            return round(extracted.extraction_confidence, 4)
        average = sum(record.confidence for record in records.values()) / len(records)
        return round(min(1.0, max(0.0, (average + extracted.extraction_confidence) / 2)), 4)

    @staticmethod
    def _error_record(provider: str, error: Exception) -> EnhancementErrorRecord:
        if isinstance(error, QuoteEnhancementError):
            return EnhancementErrorRecord(code=error.code, message=error.message, provider=provider)
        return EnhancementErrorRecord(
            code=QuoteEnhancementError.code,
            message=str(error) or error.__class__.__name__,
            provider=provider,
        )


def validate_enhanced_quote(quote: EnhancedQuote) -> None:
    """Check EnhancedQuote invariants.

    Raises:
        InvalidEnhancedQuoteError: Listing every violation found
    """
    violations: List[str] = []

    for name, value in (("total_enhancement", quote.total_enhancement), ("final_total", quote.final_total)):
        if not math.isfinite(value) or value < 0:
            violations.append(f"{name} must be a finite non-negative number, got {value}")

    expected = quote.base_quote.monthly_total + quote.total_enhancement
    if abs(quote.final_total - expected) > TOTAL_TOLERANCE:
        violations.append(f"final_total {quote.final_total} != base {quote.base_quote.monthly_total} + enhancements {quote.total_enhancement}")

    counted = total_enhancement(quote.enhancements.values())
    if abs(counted - quote.total_enhancement) > TOTAL_TOLERANCE * max(1, len(quote.enhancements)):
        violations.append(f"total_enhancement {quote.total_enhancement} != sum of enhancements {round(counted, 2)}")

    for kind, record in quote.enhancements.items():
        if not math.isfinite(record.monthly_amount) or record.monthly_amount < 0:
            violations.append(f"{kind.value}: monthly_amount must be non-negative, got {record.monthly_amount}")
        if not 0.0 <= record.confidence <= 1.0:
            violations.append(f"{kind.value}: confidence must be within [0, 1], got {record.confidence}")

    if not 0.0 <= quote.overall_confidence <= 1.0:
        violations.append(f"overall_confidence must be within [0, 1], got {quote.overall_confidence}")

    if quote.quote_type == QuoteType.STATUTORY_ONLY:
        leaked = sorted(kind.value for kind in quote.enhancements if kind in TERMINATION_KINDS)
        if leaked:
            violations.append(f"statutory-only quote carries termination provisions: {', '.join(leaked)}")

    if violations:
        raise InvalidEnhancedQuoteError(
            f"Enhanced quote for {quote.provider} is inconsistent: {'; '.join(violations)}",
            provider=quote.provider,
        )
