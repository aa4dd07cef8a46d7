"""
Normalize a local PDF with the configured pipeline.

Prints which strategy was used, the page count and the normalized text.
The recognition fallback calls the configured LLM provider.

Usage:
    python scripts/normalize_pdf.py path/to/submission.pdf [--max-pages 10] [--threshold 500]
"""
import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path

from ta_assistant.ingestion.document_processor import NormalizerConfig, normalize_pdf
from ta_assistant.ingestion.errors import IngestionError
from ta_assistant.utils.logger import get_logger

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="normalize-pdf",
        description="Extract page-labeled text from a PDF, falling back to vision OCR.",
    )
    parser.add_argument("pdf", type=Path, help="Path to the PDF")
    parser.add_argument("--max-pages", type=int, default=None, help="Page cap")
    parser.add_argument("--threshold", type=int, default=None, help="Minimum direct-text characters")
    parser.add_argument("--concurrency", type=int, default=None, help="OCR workers")
    parser.add_argument("--quiet", action="store_true", help="Print only metadata")
    return parser


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)

    config = NormalizerConfig.from_settings()
    overrides = {
        "max_pages": args.max_pages,
        "text_threshold": args.threshold,
        "ocr_concurrency": args.concurrency,
    }
    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})

    try:
        document = asyncio.run(normalize_pdf(args.pdf, config=config))
    except FileNotFoundError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2
    except IngestionError as e:
        logger.error(f"Normalization failed: {e}")
        print(f"❌ Normalization failed: {e}", file=sys.stderr)
        return 1

    print("=" * 70)
    print(f"📄 {args.pdf.name}")
    print(f"   Pages: {document.pages_count}")
    print(f"   Strategy: {document.strategy.value}")
    print(f"   Characters: {document.char_count:,}")
    print("=" * 70)
    if not args.quiet:
        print(document.text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
