"""Ordered computation strategies with explicit results.

Both the legal baseline and the per-quote deltas are produced by an ordered
list of strategies: the reasoning service first (when configured), then the
deterministic calculator. Each strategy returns a StrategyResult instead of
raising; run_strategies() tries them in order and moves on only when one
fails.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

from pydantic import ValidationError

from quote_enhancer.domain.legal import BaselineItem, LegalBaseline, LegalProfile, LegalRequirements
from quote_enhancer.domain.models import (
    ALLOWANCE_KINDS,
    BenefitKind,
    EnhancementRecord,
    EnhancementSource,
    NormalizedQuote,
    OverlapAnalysis,
    QuoteType,
    StandardizedBenefitData,
)
from quote_enhancer.logging import get_logger
from quote_enhancer.utils.money import round_money

from .calculator import DeltaResult, build_baseline, compute_deltas
from .exceptions import ReasoningServiceError
from .reasoning import (
    PrepassBaselineResponse,
    ReasoningResponse,
    ReasoningService,
    build_baseline_payload,
    build_enhancement_payload,
)

logger = get_logger(__name__, component="enhancement")

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_MAX_ATTEMPTS = 2
PREPASS_CONFIDENCE = 0.75


@dataclass
class StrategyResult(Generic[T]):
    """
    Outcome of one strategy.

    Attributes:
        ok: Whether the strategy produced a value
        value: Produced value when ok
        error: Failure cause when not ok
        strategy: Name of the strategy that produced this result
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[Exception] = None
    strategy: str = ""

    @classmethod
    def success(cls, value: T, strategy: str) -> "StrategyResult[T]":
        return cls(ok=True, value=value, strategy=strategy)

    @classmethod
    def failure(cls, error: Exception, strategy: str) -> "StrategyResult[T]":
        return cls(ok=False, error=error, strategy=strategy)


@dataclass
class BaselineRequest:
    """Inputs for building a legal baseline."""

    profile: LegalProfile
    requirements: LegalRequirements
    base_salary: float
    currency: str
    legal_text: str = ""
    legal_currency: Optional[str] = None
    severance_fallback_months: float = 3.0


@dataclass
class DeltaRequest:
    """Inputs for computing per-benefit deltas of one quote."""

    provider: str
    quote: NormalizedQuote
    quote_type: QuoteType
    contract_months: int
    extracted: StandardizedBenefitData
    profile: LegalProfile
    baseline: LegalBaseline


class Strategy(ABC, Generic[R, T]):
    """A way of turning a request into a value."""

    name = "strategy"

    @abstractmethod
    async def run(self, request: R) -> StrategyResult[T]:
        pass


def _benefit_kind(key: str) -> Optional[BenefitKind]:
    try:
        return BenefitKind(key.strip().lower())
    except ValueError:
        return None


class _ReasoningStrategy(Strategy[R, T]):
    """Calls the reasoning service, retrying immediately up to max_attempts."""

    def __init__(self, service: ReasoningService, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> None:
        self.service = service
        self.max_attempts = max(1, max_attempts)

    async def run(self, request: R) -> StrategyResult[T]:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return StrategyResult.success(await self._attempt(request), self.name)
            except ValidationError as e:
                last_error = e
                reason = f"invalid response: {e.error_count()} validation errors"
            except Exception as e:
                last_error = e
                reason = str(e) or e.__class__.__name__
            logger.warning(
                f"Reasoning attempt {attempt}/{self.max_attempts} failed: {reason}",
                extra={"event": f"enhancement.{self.name}.attempt_failed", "attempt": attempt},
            )

        error = ReasoningServiceError(
            f"Reasoning service failed after {self.max_attempts} attempts: {last_error}",
            attempts=self.max_attempts,
        )
        error.__cause__ = last_error
        return StrategyResult.failure(error, self.name)

    @abstractmethod
    async def _attempt(self, request: R) -> T:
        pass


class ReasoningBaselineStrategy(_ReasoningStrategy[BaselineRequest, LegalBaseline]):
    """Legal baseline pre-pass through the reasoning service."""

    name = "reasoning_baseline"

    async def _attempt(self, request: BaselineRequest) -> LegalBaseline:
        payload = build_baseline_payload(
            request.profile,
            request.base_salary,
            request.currency,
            request.legal_text,
            request.legal_currency,
        )
        response = PrepassBaselineResponse.model_validate(await self.service.build_legal_baseline(payload))

        items: Dict[BenefitKind, BaselineItem] = {}
        warnings = list(response.warnings)
        for entry in response.items:
            kind = _benefit_kind(entry.key)
            if kind is None:
                warnings.append(f"Ignored unknown baseline item '{entry.key}'")
                continue
            amount = round_money(entry.monthly_amount_local)
            if amount <= 0:
                continue
            items[kind] = BaselineItem(
                kind=kind,
                monthly_amount=amount,
                mandatory=entry.mandatory,
                formula=entry.formula,
                explanation=entry.name or kind.value.replace("_", " ").capitalize(),
                confidence=PREPASS_CONFIDENCE,
            )

        return LegalBaseline(
            country_code=request.profile.country_code,
            currency=request.currency,
            base_salary_monthly=request.base_salary,
            contract_months=request.profile.contract_months,
            quote_type=request.profile.quote_type,
            items=items,
            source="reasoning",
            warnings=warnings,
        )


class DeterministicBaselineStrategy(Strategy[BaselineRequest, LegalBaseline]):
    """Closed-form legal baseline from parsed requirements."""

    name = "deterministic_baseline"

    async def run(self, request: BaselineRequest) -> StrategyResult[LegalBaseline]:
        try:
            baseline = build_baseline(
                request.requirements,
                request.base_salary,
                request.profile.contract_months,
                request.profile.quote_type,
                country_code=request.profile.country_code,
                currency=request.currency,
                severance_fallback_months=request.severance_fallback_months,
            )
        except ValueError as e:
            return StrategyResult.failure(e, self.name)
        return StrategyResult.success(baseline, self.name)


class ReasoningDeltaStrategy(_ReasoningStrategy[DeltaRequest, DeltaResult]):
    """Per-quote deltas computed by the reasoning service."""

    name = "reasoning_delta"

    async def _attempt(self, request: DeltaRequest) -> DeltaResult:
        payload = build_enhancement_payload(
            request.provider,
            request.quote,
            request.quote_type,
            request.contract_months,
            request.extracted,
            request.profile,
        )
        response = ReasoningResponse.model_validate(await self.service.compute_enhancements(payload))

        records: Dict[BenefitKind, EnhancementRecord] = {}
        warnings = list(response.warnings)
        for key, item in response.enhancements.items():
            kind = _benefit_kind(key)
            if kind is None:
                warnings.append(f"Ignored unknown enhancement '{key}'")
                continue

            baseline_item = request.baseline.items.get(kind)
            if item.mandatory is not None:
                mandatory = item.mandatory
            elif baseline_item is not None:
                mandatory = baseline_item.mandatory
            else:
                mandatory = kind not in ALLOWANCE_KINDS

            monthly = 0.0 if item.already_included else round_money(item.resolved_monthly)
            records[kind] = EnhancementRecord(
                kind=kind,
                monthly_amount=monthly,
                yearly_amount=round_money(monthly * 12),
                total_amount=round_money(monthly * request.contract_months),
                explanation=item.explanation,
                confidence=item.confidence,
                is_already_included=item.already_included,
                is_mandatory=mandatory,
                source=EnhancementSource.REASONING,
            )

        overall = response.confidence_scores.get("overall")
        return DeltaResult(
            records=records,
            overlap=OverlapAnalysis(
                provider_coverage=response.analysis.provider_coverage,
                missing_requirements=response.analysis.missing_requirements,
                double_counting_risks=response.analysis.double_counting_risks,
                recommendations=response.recommendations,
            ),
            warnings=warnings,
            confidence=min(1.0, max(0.0, overall)) if overall is not None else None,
            source=EnhancementSource.REASONING,
        )


class DeterministicDeltaStrategy(Strategy[DeltaRequest, DeltaResult]):
    """Deltas from the deterministic baseline minus provider coverage."""

    name = "deterministic_delta"

    async def run(self, request: DeltaRequest) -> StrategyResult[DeltaResult]:
        return StrategyResult.success(
            compute_deltas(request.baseline, request.extracted, request.contract_months),
            self.name,
        )


async def run_strategies(
    strategies: Sequence[Strategy[Any, T]], request: Any
) -> Tuple[StrategyResult[T], List[StrategyResult[T]]]:
    """Run strategies in order until one succeeds.

    Args:
        strategies: Ordered strategies; at least one
        request: Request passed to each strategy

    Returns:
        Tuple of (successful result, failed results before it)

    Raises:
        The last strategy's error if every strategy fails
    """
    failures: List[StrategyResult[T]] = []
    for strategy in strategies:
        result = await strategy.run(request)
        if result.ok:
            if failures:
                logger.info(
                    f"Fell back to {result.strategy} after {len(failures)} failed strategies",
                    extra={
                        "event": "enhancement.strategy.fallback",
                        "strategy": result.strategy,
                        "failed": [f.strategy for f in failures],
                    },
                )
            return result, failures
        failures.append(result)

    if not failures:
        raise ValueError("run_strategies() needs at least one strategy")
    last = failures[-1].error
    raise last if last is not None else RuntimeError("All strategies failed")
