from typing import List

from fastapi import APIRouter

from core.config import MAX_BATCH_ITEMS
from exceptions import ValidationError
from schemas.validation import (
    BatchValidationRequest,
    BatchValidationResult,
    ErrorAnalysis,
    FormatRequest,
    PerformanceStats,
    ValidationRequest,
    ValidationResult,
)
from services.validation_service import validation_service
from validation.factory import ValidatorFactory

router = APIRouter(prefix="/validation", tags=["validation"])


@router.post("/validate", response_model=ValidationResult)
async def validate_answer(req: ValidationRequest):
    """Compare a student's answer with the correct answer for the declared shape."""
    return await validation_service.validate_with_timeout(req)


@router.post("/format", response_model=ValidationResult)
async def validate_format(req: FormatRequest):
    config = validation_service.build_config(req.shape, req.config)
    return await ValidatorFactory.validate_format(req.shape, req.input, config)


@router.post("/batch", response_model=BatchValidationResult)
async def validate_batch(req: BatchValidationRequest):
    if len(req.items) > MAX_BATCH_ITEMS:
        raise ValidationError(
            f"Batch has {len(req.items)} items; at most {MAX_BATCH_ITEMS} are allowed.",
            "items",
            limit=MAX_BATCH_ITEMS,
        )
    return await validation_service.validate_batch(req)


@router.post("/quick")
async def quick_validate(req: FormatRequest):
    return {"valid": await validation_service.quick_validate(req.shape, req.input)}


@router.post("/analyze", response_model=ErrorAnalysis)
async def analyze_errors(history: List[ValidationResult]):
    return validation_service.analyze_errors(history)


@router.get("/shapes")
async def supported_shapes():
    return {"shapes": ValidatorFactory.supported_shapes()}


@router.get("/stats", response_model=PerformanceStats)
async def performance_stats():
    return validation_service.get_performance_stats()
