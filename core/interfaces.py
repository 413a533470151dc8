"""
Abstract interfaces for the amount extraction pipeline.
Every stage and the OCR engine sit behind an interface; the pipeline depends on none of the concrete impls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from core.models import (
    ClassificationResult,
    ClassifiedAmount,
    ConsistencyReport,
    NormalizationResult,
    TokenExtractionResult,
    ValidationOutcome,
)


class IOCRService(ABC):
    """Abstract OCR: image bytes -> raw text + confidence."""

    @abstractmethod
    def recognize(self, image_bytes: bytes) -> tuple[str, float]:
        """Returns (raw_text, confidence in [0,1])."""
        ...


class IExtractionService(ABC):
    """Step 1: raw input -> tokens + currency, or a guardrail status."""

    @abstractmethod
    def extract_from_text(self, text: str, trace_id: str = "") -> TokenExtractionResult:
        ...

    @abstractmethod
    def extract_from_image(self, image_bytes: bytes, trace_id: str = "") -> TokenExtractionResult:
        ...


class INormalizationService(ABC):
    """Step 2: raw tokens -> numeric amounts, plus batch-level business rules."""

    @abstractmethod
    def normalize(self, tokens: Sequence[str], trace_id: str = "") -> NormalizationResult:
        ...

    @abstractmethod
    def validate(self, amounts: Sequence[float]) -> ValidationOutcome:
        ...


class IClassificationService(ABC):
    """Step 3: amounts + raw text -> one category per amount, plus consistency checks."""

    @abstractmethod
    def classify(self, amounts: Sequence[float], raw_text: str, trace_id: str = "") -> ClassificationResult:
        ...

    @abstractmethod
    def check_consistency(self, amounts: Sequence[ClassifiedAmount]) -> ConsistencyReport:
        ...
