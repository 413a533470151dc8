"""
Pydantic schemas for pipeline input and response shapes. Used by pipeline, services, main.
"""
from __future__ import annotations

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

ALLOWED_IMAGE_MIME_TYPES = ("image/jpeg", "image/jpg", "image/png")
DEFAULT_MAX_TEXT_LENGTH = 10_000
DEFAULT_MAX_FILE_SIZE_MB = 5


def sniff_image_mime_type(data: bytes) -> str:
    """Best-effort mime type from magic bytes; empty string when unknown."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    return ""


class ExtractionRequest(BaseModel):
    """
    One pipeline invocation: exactly one of text or image.
    Limits come from validation context: max_text_length, max_file_size_mb.
    mime_type is declared before image so the image validator can see it.
    """

    text: str | None = None
    mime_type: str | None = None
    image: bytes | None = None

    @model_validator(mode="after")
    def exactly_one_input(self) -> "ExtractionRequest":
        has_text = self.text is not None
        has_image = self.image is not None
        if has_text == has_image:
            raise ValueError("Exactly one of text or image must be provided")
        return self

    @field_validator("text")
    @classmethod
    def text_within_limits(cls, v: str | None, info: ValidationInfo) -> str | None:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Text cannot be empty")
        limit = (info.context or {}).get("max_text_length", DEFAULT_MAX_TEXT_LENGTH)
        if len(v) > limit:
            raise ValueError(f"Text exceeds maximum length of {limit} characters")
        return v

    @field_validator("image")
    @classmethod
    def image_within_limits(cls, v: bytes | None, info: ValidationInfo) -> bytes | None:
        if v is None:
            return v
        if not v:
            raise ValueError("Image cannot be empty")
        max_mb = (info.context or {}).get("max_file_size_mb", DEFAULT_MAX_FILE_SIZE_MB)
        if len(v) > max_mb * 1024 * 1024:
            raise ValueError(f"File size exceeds {max_mb}MB limit")
        mime = (info.data.get("mime_type") or sniff_image_mime_type(v)).strip().lower()
        if mime not in ALLOWED_IMAGE_MIME_TYPES:
            raise ValueError("File must be JPEG or PNG")
        return v


# ---------------------------------------------------------------------------
# OCR result
# ---------------------------------------------------------------------------


class OCRExtractionResult(BaseModel):
    """Result from OCR engine: raw text and confidence."""

    raw_text: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


class AmountSchema(BaseModel):
    """Single classified amount in the final response."""

    type: str
    value: float
    source: str

    @field_validator("value")
    @classmethod
    def value_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("value must be >= 0")
        return v


class ExtractionResponse(BaseModel):
    currency: str
    amounts: list[AmountSchema] = Field(default_factory=list)
    status: str = "ok"


class GuardrailResponse(BaseModel):
    """Degenerate-but-valid outcome (no amounts, low OCR confidence, invalid amounts)."""

    status: str
    reason: str
    confidence: float | None = None
