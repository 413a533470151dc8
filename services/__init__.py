"""Pipeline services: OCR, Extraction, Normalization, Classification."""

from services.ocr_service import OCRService
from services.extraction_service import ExtractionService
from services.normalization_service import NormalizationService
from services.classification_service import ClassificationService

__all__ = [
    "OCRService",
    "ExtractionService",
    "NormalizationService",
    "ClassificationService",
]
