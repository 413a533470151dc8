"""Shared utilities: config, logger, OCR token repair."""

from utils.config import AppConfig, load_config
from utils.logger import get_logger, setup_logging, log_structured
from utils.ocr_normalize import repair_digit_confusions

__all__ = [
    "AppConfig",
    "load_config",
    "get_logger",
    "setup_logging",
    "log_structured",
    "repair_digit_confusions",
]
