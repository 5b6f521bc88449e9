import asyncio
import logging
import re
import time
from collections import Counter
from typing import Iterable, Optional

# Schemas
from schemas.validation import (
    BatchItemResult,
    BatchValidationRequest,
    BatchValidationResult,
    ErrorAnalysis,
    ErrorTypeCount,
    PatternCount,
    PerformanceStats,
    ResultType,
    SelectorConfig,
    ValidationRequest,
    ValidationResult,
)

# Validation engine
from validation.base import timestamp
from validation.factory import ShapeKey, ValidatorFactory, resolve_shape

# Config
from core.config import (
    BATCH_CONCURRENCY_LIMIT,
    DEBUG_SELECTORS,
    DEFAULT_SHAPE_CONFIGS,
    EVALUATION_TIMEOUT_MS,
    QUICK_VALIDATION_TIMEOUT_MS,
    SELECTOR_MAX_ITERATIONS,
    SHAPE_TIMEOUTS_MS,
)

# Metrics
from core.metrics import track_performance
from core.prometheus_metrics import prometheus_collector

logger = logging.getLogger(__name__)

FRACTION_PATTERN = re.compile(r"\d+/\d+")

PATTERN_SUGGESTIONS = {
    "infinity_usage": "Check the use of the infinity symbol (∞)",
    "set_notation": "Review set notation: use {elements} for discrete sets",
    "fractions": "Fractions can be written as decimals or expressions",
}


def detect_patterns(text: str) -> Iterable[str]:
    text = text.lower()
    if "infty" in text or "∞" in text:
        yield "infinity_usage"
    if "{" in text or "}" in text:
        yield "set_notation"
    if FRACTION_PATTERN.search(text):
        yield "fractions"


class ValidationService:
    """
    Orchestrates answer validation on top of the validator factory.

    This service provides:
    - Single validations annotated with shape and processing time
    - Timeout-bounded validations
    - Concurrency-limited batch validation that preserves input order
    - Quick format checks that never raise
    - Error pattern analysis over a validation history
    - Live performance counters

    No public method raises: every fault is converted into a ValidationResult.
    """

    def __init__(self, concurrency_limit: int = BATCH_CONCURRENCY_LIMIT):
        self.concurrency_limit = concurrency_limit
        self._total_validations = 0
        self._total_time_ms = 0.0
        self._correct = 0
        self._incorrect = 0

    def build_config(self, shape: ShapeKey, config: Optional[SelectorConfig] = None) -> SelectorConfig:
        """
        Merges the per-shape defaults and service settings with a request config.

        Only fields explicitly set on the request config override the defaults.

        Args:
            shape: Answer shape (enum value, name or alias)
            config: Optional request-level configuration

        Returns:
            SelectorConfig: Effective configuration for the validator
        """
        values = {
            "timeout": EVALUATION_TIMEOUT_MS,
            "max_iterations": SELECTOR_MAX_ITERATIONS,
            "debug_mode": DEBUG_SELECTORS,
            **DEFAULT_SHAPE_CONFIGS.get(resolve_shape(shape), {}),
        }
        if config is not None:
            values.update({name: getattr(config, name) for name in config.model_fields_set})
        return SelectorConfig(**values)

    def _record(self, shape: str, result: ValidationResult, duration_ms: float) -> None:
        self._total_validations += 1
        self._total_time_ms += duration_ms
        if result.ok is True:
            self._correct += 1
        elif result.ok is False:
            self._incorrect += 1
        prometheus_collector.record_result(shape, result.type, result.ok)

    @track_performance(service_name="ValidationService")
    async def validate_single(self, request: ValidationRequest) -> ValidationResult:
        """
        Validates one answer against its correct answer.

        Args:
            request: Shape, correct answer, user answer and optional config

        Returns:
            ValidationResult: Comparison result with ``shape`` and
            ``processing_time_ms`` added to its metadata. Internal failures are
            returned as a ``validation_error`` result.
        """
        start_time = time.time()
        shape = resolve_shape(request.shape)
        logger.debug(f"Starting validation: shape={shape}, user_answer={request.user_answer[:100]!r}")

        try:
            result = await ValidatorFactory.validate_response(
                request.shape,
                request.correct_answer,
                request.user_answer,
                self.build_config(request.shape, request.config),
            )
        except Exception as e:
            processing_time_ms = (time.time() - start_time) * 1000
            logger.error(f"Validation failed for shape '{shape}': {e}")
            result = ValidationResult(
                ok=False,
                title="Validation error",
                message="Internal error while validating the answer",
                metadata={
                    "type": ResultType.VALIDATION_ERROR.value,
                    "error": str(e),
                    "shape": shape,
                    "original_input": request.user_answer,
                    "processing_time_ms": processing_time_ms,
                    "timestamp": timestamp(),
                },
            )
            self._record(shape, result, processing_time_ms)
            return result

        processing_time_ms = (time.time() - start_time) * 1000
        metadata = {
            "original_input": request.user_answer,
            **result.metadata,
            "shape": shape,
            "processing_time_ms": processing_time_ms,
        }
        result = result.model_copy(update={"metadata": metadata})

        logger.info(f"Validation completed: shape={shape}, ok={result.ok}, type={result.type}, "
                    f"processing_time_ms={processing_time_ms:.1f}")
        self._record(shape, result, processing_time_ms)
        return result

    async def validate_with_timeout(
        self,
        request: ValidationRequest,
        timeout_ms: Optional[int] = None,
    ) -> ValidationResult:
        """
        Races ``validate_single`` against a timer.

        Args:
            request: Validation request
            timeout_ms: Budget in milliseconds; defaults to the per-shape timeout

        Returns:
            ValidationResult: The validation result, or a ``timeout_error`` result
            when the budget is exceeded
        """
        if timeout_ms is None:
            timeout_ms = SHAPE_TIMEOUTS_MS.get(resolve_shape(request.shape), EVALUATION_TIMEOUT_MS)

        try:
            return await asyncio.wait_for(self.validate_single(request), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            logger.warning(f"Validation timed out after {timeout_ms}ms: shape={resolve_shape(request.shape)}")
            return ValidationResult(
                ok=False,
                title="Timeout",
                message=f"Validation took longer than {timeout_ms}ms",
                metadata={
                    "type": ResultType.TIMEOUT_ERROR.value,
                    "timeout_ms": timeout_ms,
                    "shape": resolve_shape(request.shape),
                    "original_input": request.user_answer,
                    "timestamp": timestamp(),
                },
            )

    @track_performance(service_name="ValidationService")
    async def validate_batch(self, request: BatchValidationRequest) -> BatchValidationResult:
        """
        Validates every item of an exercise with bounded concurrency.

        At most ``concurrency_limit`` validations are in flight at once. Results
        come back in input order, each tagged with its original ``index``.

        Args:
            request: Exercise identifier and ordered validation items

        Returns:
            BatchValidationResult: Per-item results plus aggregate score
        """
        start_time = time.time()
        semaphore = asyncio.Semaphore(self.concurrency_limit)
        logger.info(f"Starting batch validation: exercise_id={request.exercise_id}, items={len(request.items)}")
        prometheus_collector.record_batch(len(request.items))

        async def run(index: int, item: ValidationRequest) -> BatchItemResult:
            async with semaphore:
                try:
                    result = await self.validate_single(item)
                except Exception as e:
                    logger.error(f"Batch item {index} failed: {e}")
                    result = ValidationResult(
                        ok=False,
                        title="Validation error",
                        message="Internal error while validating the answer",
                        metadata={"type": ResultType.VALIDATION_ERROR.value, "error": str(e)},
                    )
            return BatchItemResult(index=index, **result.model_dump())

        results = await asyncio.gather(*(run(i, item) for i, item in enumerate(request.items)))

        total_score = sum(1 for r in results if r.ok is True)
        max_score = len(results)
        processing_time_ms = (time.time() - start_time) * 1000

        logger.info(f"Batch validation completed: exercise_id={request.exercise_id}, "
                    f"score={total_score}/{max_score}, processing_time_ms={processing_time_ms:.1f}")

        return BatchValidationResult(
            exercise_id=request.exercise_id,
            results=list(results),
            total_score=total_score,
            max_score=max_score,
            all_correct=total_score == max_score,
            processing_time_ms=processing_time_ms,
        )

    async def quick_validate(self, shape: ShapeKey, text: str) -> bool:
        """Format-only check with a reduced budget. Any failure yields False."""
        try:
            validator = ValidatorFactory.create(shape, self.build_config(shape, SelectorConfig(timeout=QUICK_VALIDATION_TIMEOUT_MS)))
            return await asyncio.wait_for(validator.validate_quick(text), timeout=QUICK_VALIDATION_TIMEOUT_MS / 1000)
        except Exception as e:
            logger.warning(f"Quick validation failed: shape={shape}, input={str(text)[:50]!r}, error={e}")
            return False

    def analyze_errors(self, history: Iterable[ValidationResult]) -> ErrorAnalysis:
        """
        Summarizes failed results: counts by result type, common input
        patterns, and suggestions for the detected patterns.
        """
        patterns = Counter()
        error_types = Counter()

        for result in history:
            if result.ok is not False:
                continue
            error_types[result.metadata.get("type") or "unknown"] += 1
            original_input = result.metadata.get("original_input")
            if original_input:
                patterns.update(detect_patterns(str(original_input)))

        return ErrorAnalysis(
            common_patterns=[PatternCount(pattern=p, frequency=f) for p, f in patterns.most_common()],
            error_types=[ErrorTypeCount(type=t, count=c) for t, c in error_types.most_common()],
            suggestions=[PATTERN_SUGGESTIONS[p] for p in PATTERN_SUGGESTIONS if p in patterns],
        )

    def get_performance_stats(self) -> PerformanceStats:
        total = self._total_validations
        if not total:
            return PerformanceStats(
                total_validations=0,
                average_validation_time_ms=0.0,
                success_rate=0.0,
                error_rate=0.0,
            )
        return PerformanceStats(
            total_validations=total,
            average_validation_time_ms=round(self._total_time_ms / total, 2),
            success_rate=round(self._correct / total * 100, 2),
            error_rate=round(self._incorrect / total * 100, 2),
        )


# Singleton instance
validation_service = ValidationService()
