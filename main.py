"""
Medical bill amount extraction: CLI entry point.

Usage:
  python main.py --text "Total: INR 1200 | Paid: 1000 | Due: 200"
  python main.py --text-file bill.txt [--step extract|normalize|classify|run]
  python main.py --image bill.png [--config config.yaml] [--log-level DEBUG]

- run (default): full pipeline -> {currency, amounts: [{type, value, source}], status}
  or {status, reason[, confidence]} for no_amounts_found / low_confidence / invalid_amounts.
- extract / normalize / classify: stop after that stage and print its output (diagnostics).
- Input errors exit with code 2; pipeline failures with code 1.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from core.exceptions import AmountExtractionError, ConfigError, InvalidInputError
from pipeline.amount_pipeline import AmountExtractionPipeline
from pipeline.factory import build_pipeline
from utils.config import load_config
from utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

STEPS = ("extract", "normalize", "classify", "run")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract and classify amounts from medical bills.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", help="Bill text")
    source.add_argument("--text-file", type=Path, help="Path to a UTF-8 text file with bill text")
    source.add_argument("--image", type=Path, help="Path to a JPEG/PNG bill image (OCR)")
    parser.add_argument("--config", type=Path, default=None, help="YAML config (default: config.yaml)")
    parser.add_argument("--step", choices=STEPS, default="run", help="Stop after this stage")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser.parse_args(argv)


def run_step(pipeline: AmountExtractionPipeline, step: str, text: str | None, image: bytes | None) -> dict[str, Any]:
    """Run stages up to `step`; guardrail outcomes are returned as soon as they occur."""
    if step == "run":
        return pipeline.run(text=text, image=image).to_dict()

    extraction = pipeline.extract_tokens(text=text, image=image)
    if step == "extract" or not extraction.ok:
        return extraction.to_dict()

    normalized = pipeline.normalize(extraction.tokens)
    outcome = pipeline.validate_amounts(normalized.amounts)
    if not outcome.valid:
        return {"status": "invalid_amounts", "reason": outcome.reason}
    if step == "normalize":
        return normalized.to_dict()

    return pipeline.classify(normalized.amounts, extraction.raw_text).to_dict()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    setup_logging(args.log_level or config.log_level, stream=sys.stderr)

    text: str | None = args.text
    image: bytes | None = None
    try:
        if args.text_file is not None:
            text = args.text_file.read_text(encoding="utf-8")
        elif args.image is not None:
            image = args.image.read_bytes()
    except OSError as e:
        print(f"Cannot read input: {e}", file=sys.stderr)
        return 2

    pipeline = build_pipeline(config)
    try:
        output = run_step(pipeline, args.step, text, image)
    except InvalidInputError as e:
        print(json.dumps({"error": e.code, "message": str(e)}), file=sys.stderr)
        return 2
    except AmountExtractionError as e:
        logger.error("Processing failed: %s", e, extra={"trace_id": e.trace_id})
        print(json.dumps({"error": e.code, "message": str(e)}), file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
