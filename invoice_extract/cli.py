"""
Command-line batch runner.

Extracts every given PDF through Gemini, then writes the CSV export and a JSON
dump of the records to the output folder.
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError as SettingsError

from .config import Settings
from .core.batch import process_batch
from .core.exceptions import ConfigurationError, ValidationError
from .core.export import write_export
from .core.extraction import GeminiExtractor
from .core.ledger import InvoiceLedger
from .core.models import RawDocument
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def collect_pdf_paths(paths: List[str]) -> List[Path]:
    """Expand directories into their PDF files; plain files are kept as given."""
    collected: List[Path] = []
    for raw_path in paths:
        path = Path(raw_path)
        if path.is_dir():
            collected.extend(sorted(p for p in path.iterdir() if p.suffix.lower() == ".pdf"))
        else:
            collected.append(path)
    return collected


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="invoice-extract",
        description="Extract invoice PDFs with Gemini and export them as CSV",
    )
    parser.add_argument("paths", nargs="+", help="PDF files or folders containing PDF files")
    parser.add_argument("--output", default=None, help="Output folder (default: OUTPUT_DIRECTORY or ./output)")
    parser.add_argument("--logs", default=None, help="Logs folder (default: LOGS_DIRECTORY or ./logs)")
    parser.add_argument("--delay", type=float, default=None,
                        help="Seconds to wait between documents (default: 0.5)")
    parser.add_argument("--debug-responses", action="store_true", help="Save raw model replies")
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    parser.add_argument("--verbose", action="store_true", help="Show debug messages on the console")
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Run one batch and write its outputs. Returns the process exit code."""
    output_dir = Path(args.output) if args.output else settings.output_directory
    delay = settings.inter_document_delay_seconds if args.delay is None else args.delay

    try:
        documents = [RawDocument.from_path(path) for path in collect_pdf_paths(args.paths)]
    except OSError as exc:
        logger.error(f"❌ Unable to read input: {exc}")
        return 1
    extractor = GeminiExtractor(settings)

    try:
        result = await process_batch(
            documents,
            extractor,
            delay_seconds=delay,
            max_batch_size=settings.max_batch_size,
            max_file_size_bytes=settings.max_file_size_bytes,
            show_progress=not args.no_progress,
        )
    except ValidationError as exc:
        logger.error(f"❌ {exc.message}")
        return 1

    if result.failure_summary:
        logger.error(f"❌ {result.failure_summary}")

    ledger = InvoiceLedger(result.successes)
    if len(ledger) == 0:
        logger.warning("No invoices extracted; nothing to export.")
        return 1

    csv_path = write_export(ledger.invoices, output_dir)
    json_path = csv_path.with_suffix(".json")
    json_path.write_text(
        json.dumps([invoice.model_dump(by_alias=True) for invoice in ledger], indent=2, ensure_ascii=False),
        encoding="utf-8",
    )

    logger.info(f"✅ Successfully processed {len(ledger)} of {len(documents)} invoices")
    logger.info(f"   - Total amount: {ledger.grand_total:.2f}")
    logger.info(f"   - CSV: {csv_path}")
    logger.info(f"   - JSON: {json_path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv()
    overrides = {"debug_responses": True} if args.debug_responses else {}
    try:
        settings = Settings(**overrides)
    except SettingsError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    log_path = setup_logging(Path(args.logs) if args.logs else settings.logs_directory, verbose=args.verbose)
    logger.info(f"📂 Input: {', '.join(args.paths)}")
    logger.info(f"📝 Log file: {log_path}")

    start_time = time.time()
    try:
        exit_code = asyncio.run(run(args, settings))
    except ConfigurationError as exc:
        logger.error(f"❌ {exc.message}")
        return 2
    logger.info(f"⏱️  Finished in {time.time() - start_time:.1f}s")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
