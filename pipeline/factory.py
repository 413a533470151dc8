"""Factory for wiring the pipeline from config. Tests inject their own services instead."""

from __future__ import annotations

from core.interfaces import IOCRService
from pipeline.amount_pipeline import AmountExtractionPipeline
from services.classification_service import ClassificationService
from services.extraction_service import ExtractionService
from services.normalization_service import NormalizationService
from services.ocr_service import OCRService
from utils.config import AppConfig


def create_ocr_service(config: AppConfig) -> IOCRService:
    return OCRService(
        config.ocr.engine,
        lang=config.ocr.lang,
        preprocessor=config.ocr.preprocessor,
    )


def build_pipeline(config: AppConfig, ocr_service: IOCRService | None = None) -> AmountExtractionPipeline:
    """
    Build the four-stage pipeline. OCR service defaults to Tesseract from config;
    the engine itself is only created on the first image request.
    """
    extraction = ExtractionService(
        ocr_service or create_ocr_service(config),
        min_ocr_confidence=config.ocr.min_confidence,
        default_currency=config.default_currency,
    )
    normalization = NormalizationService(config.normalization.max_reasonable_amount)
    classification = ClassificationService(
        match_tolerance=config.classification.match_tolerance,
        consistency_tolerance=config.classification.consistency_tolerance,
    )
    return AmountExtractionPipeline(
        extraction,
        normalization,
        classification,
        max_text_length=config.input.max_text_length,
        max_file_size_mb=config.input.max_file_size_mb,
    )
