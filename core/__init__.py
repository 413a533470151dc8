"""Core layer: interfaces, models, exceptions."""

from core.interfaces import (
    IOCRService,
    IExtractionService,
    INormalizationService,
    IClassificationService,
)
from core.models import (
    AmountCategory,
    CurrencyCode,
    PipelineStatus,
    TokenExtractionResult,
    NormalizationResult,
    ClassifiedAmount,
    ClassificationResult,
    ConsistencyReport,
    PipelineResult,
)
from core.exceptions import (
    AmountExtractionError,
    InvalidInputError,
    NoTextDetectedError,
    OCRError,
    ExtractionError,
    NormalizationError,
    ClassificationError,
    ConfigError,
)

__all__ = [
    "IOCRService",
    "IExtractionService",
    "INormalizationService",
    "IClassificationService",
    "AmountCategory",
    "CurrencyCode",
    "PipelineStatus",
    "TokenExtractionResult",
    "NormalizationResult",
    "ClassifiedAmount",
    "ClassificationResult",
    "ConsistencyReport",
    "PipelineResult",
    "AmountExtractionError",
    "InvalidInputError",
    "NoTextDetectedError",
    "OCRError",
    "ExtractionError",
    "NormalizationError",
    "ClassificationError",
    "ConfigError",
]
