"""
Configuration loader: YAML + env overrides.
Thresholds and the default currency are business assumptions; all of them come from config.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from core.exceptions import ConfigError
from core.models import CurrencyCode
from extraction.ocr import SUPPORTED_ENGINES


def _coerce_float(s: Any, default: float = 0.0) -> float:
    if s is None or s == "":
        return default
    try:
        return float(s)
    except (TypeError, ValueError):
        raise ConfigError(f"Expected a number, got {s!r}")


def _coerce_int(s: Any, default: int = 0) -> int:
    if s is None or s == "":
        return default
    try:
        return int(s)
    except (TypeError, ValueError):
        raise ConfigError(f"Expected an integer, got {s!r}")


@dataclass(frozen=True)
class OCRConfig:
    """OCR engine selection and the low-confidence guardrail."""

    engine: str = "tesseract"
    lang: str = "eng"
    preprocessor: str = "pil"  # none | pil
    min_confidence: float = 0.5


@dataclass(frozen=True)
class ExtractionConfig:
    default_currency: str = CurrencyCode.INR.value


@dataclass(frozen=True)
class NormalizationConfig:
    # Anything above is treated as concatenated OCR tokens
    max_reasonable_amount: float = 10_000_000.0


@dataclass(frozen=True)
class ClassificationConfig:
    match_tolerance: float = 0.0
    consistency_tolerance: float = 1.0


@dataclass(frozen=True)
class InputConfig:
    max_text_length: int = 10_000
    max_file_size_mb: int = 5


@dataclass(frozen=True)
class AppConfig:
    """Immutable application configuration. Built from YAML + env."""

    log_level: str = "INFO"
    ocr: OCRConfig = field(default_factory=OCRConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    input: InputConfig = field(default_factory=InputConfig)

    @property
    def default_currency(self) -> CurrencyCode:
        return CurrencyCode(self.extraction.default_currency)

    def with_overrides(self, **overrides: Any) -> AppConfig:
        """Return new config with replaced keys (top-level; nested sections replaced whole)."""
        return validate_config(replace(self, **{k: v for k, v in overrides.items() if v is not None}))


def validate_config(cfg: AppConfig) -> AppConfig:
    """Raise ConfigError for values the pipeline cannot run with."""
    currencies = {c.value for c in CurrencyCode}
    if cfg.extraction.default_currency not in currencies:
        raise ConfigError(
            f"default_currency must be one of {sorted(currencies)}, got {cfg.extraction.default_currency!r}"
        )
    if cfg.ocr.engine not in SUPPORTED_ENGINES:
        raise ConfigError(f"ocr.engine must be one of {list(SUPPORTED_ENGINES)}, got {cfg.ocr.engine!r}")
    if not 0.0 <= cfg.ocr.min_confidence <= 1.0:
        raise ConfigError(f"ocr.min_confidence must be in [0, 1], got {cfg.ocr.min_confidence}")
    if cfg.classification.match_tolerance < 0 or cfg.classification.consistency_tolerance < 0:
        raise ConfigError("classification tolerances must be >= 0")
    if cfg.normalization.max_reasonable_amount <= 0:
        raise ConfigError("normalization.max_reasonable_amount must be > 0")
    if cfg.input.max_text_length <= 0 or cfg.input.max_file_size_mb <= 0:
        raise ConfigError("input limits must be > 0")
    return cfg


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    return data if isinstance(data, dict) else {}


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _config_from_dict(data: dict[str, Any]) -> AppConfig:
    """Build AppConfig from nested dict. Env overrides applied in load_config."""
    ocr_data = _section(data, "ocr")
    ext_data = _section(data, "extraction")
    norm_data = _section(data, "normalization")
    cls_data = _section(data, "classification")
    input_data = _section(data, "input")
    return AppConfig(
        log_level=str(data.get("log_level", "INFO")),
        ocr=OCRConfig(
            engine=str(ocr_data.get("engine", "tesseract")).strip().lower(),
            lang=str(ocr_data.get("lang", "eng")),
            preprocessor=str(ocr_data.get("preprocessor", "pil")).strip().lower(),
            min_confidence=_coerce_float(ocr_data.get("min_confidence"), 0.5),
        ),
        extraction=ExtractionConfig(
            default_currency=str(ext_data.get("default_currency", "INR")).strip().upper(),
        ),
        normalization=NormalizationConfig(
            max_reasonable_amount=_coerce_float(norm_data.get("max_reasonable_amount"), 10_000_000.0),
        ),
        classification=ClassificationConfig(
            match_tolerance=_coerce_float(cls_data.get("match_tolerance"), 0.0),
            consistency_tolerance=_coerce_float(cls_data.get("consistency_tolerance"), 1.0),
        ),
        input=InputConfig(
            max_text_length=_coerce_int(input_data.get("max_text_length"), 10_000),
            max_file_size_mb=_coerce_int(input_data.get("max_file_size_mb"), 5),
        ),
    )


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """
    Load config from YAML file, then apply env overrides (.env is read first).
    Env vars: LOG_LEVEL, MIN_OCR_CONFIDENCE, DEFAULT_CURRENCY, OCR_ENGINE, OCR_LANG,
    OCR_PREPROCESSOR, MAX_REASONABLE_AMOUNT, MATCH_TOLERANCE, CONSISTENCY_TOLERANCE,
    MAX_TEXT_LENGTH, MAX_FILE_SIZE_MB.
    """
    load_dotenv()
    path = Path(config_path) if config_path else Path("config.yaml")
    cfg = _config_from_dict(_load_yaml(path))
    overrides: dict[str, Any] = {}
    if os.getenv("LOG_LEVEL"):
        overrides["log_level"] = os.getenv("LOG_LEVEL")
    if os.getenv("OCR_ENGINE") or os.getenv("OCR_LANG") or os.getenv("OCR_PREPROCESSOR") or os.getenv("MIN_OCR_CONFIDENCE"):
        ocr = cfg.ocr
        overrides["ocr"] = OCRConfig(
            engine=(os.getenv("OCR_ENGINE") or ocr.engine).strip().lower(),
            lang=os.getenv("OCR_LANG") or ocr.lang,
            preprocessor=(os.getenv("OCR_PREPROCESSOR") or ocr.preprocessor).strip().lower(),
            min_confidence=_coerce_float(os.getenv("MIN_OCR_CONFIDENCE"), ocr.min_confidence),
        )
    if os.getenv("DEFAULT_CURRENCY"):
        overrides["extraction"] = ExtractionConfig(default_currency=os.getenv("DEFAULT_CURRENCY", "").strip().upper())
    if os.getenv("MAX_REASONABLE_AMOUNT"):
        overrides["normalization"] = NormalizationConfig(
            max_reasonable_amount=_coerce_float(os.getenv("MAX_REASONABLE_AMOUNT")),
        )
    if os.getenv("MATCH_TOLERANCE") or os.getenv("CONSISTENCY_TOLERANCE"):
        cls_cfg = cfg.classification
        overrides["classification"] = ClassificationConfig(
            match_tolerance=_coerce_float(os.getenv("MATCH_TOLERANCE"), cls_cfg.match_tolerance),
            consistency_tolerance=_coerce_float(os.getenv("CONSISTENCY_TOLERANCE"), cls_cfg.consistency_tolerance),
        )
    if os.getenv("MAX_TEXT_LENGTH") or os.getenv("MAX_FILE_SIZE_MB"):
        inp = cfg.input
        overrides["input"] = InputConfig(
            max_text_length=_coerce_int(os.getenv("MAX_TEXT_LENGTH"), inp.max_text_length),
            max_file_size_mb=_coerce_int(os.getenv("MAX_FILE_SIZE_MB"), inp.max_file_size_mb),
        )
    if not overrides:
        return validate_config(cfg)
    return cfg.with_overrides(**overrides)
