"""Pipeline: four-stage amount extraction and its config wiring."""

from pipeline.amount_pipeline import AmountExtractionPipeline
from pipeline.factory import build_pipeline, create_ocr_service

__all__ = [
    "AmountExtractionPipeline",
    "build_pipeline",
    "create_ocr_service",
]
