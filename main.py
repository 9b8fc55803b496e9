#!/usr/bin/env python3
"""
Invoice OCR Extraction Engine - Main Entry Point.

This is the command-line entry point for the extraction engine. It
reads the text produced by an OCR step and writes the extracted header
fields and line items as JSON.

Usage:
    Command Line:
        python main.py --input invoice.txt
        python main.py --input invoice.txt --output result.json
        tesseract invoice.png - | python main.py --input - --items-only

    Python:
        from main import run_extraction
        result = run_extraction(ocr_text)

Author: ML Engineering Team
Version: 1.0.0
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import project modules
from config import ConfigurationManager
from invoice_ocr.utils.exceptions import InvoiceExtractionError
from invoice_ocr.utils.logger import LOGGER_NAMESPACE, setup_logger_from_config, get_logger


def parse_arguments(argv: Optional[list] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Argument list; None reads sys.argv.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Invoice OCR Field & Table Extraction Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Extract everything from an OCR text file:
        python main.py --input invoice.txt

    Read OCR text from stdin, write JSON to a file:
        python main.py --input - --output result.json

    Header fields only, with debug logging:
        python main.py --input invoice.txt --fields-only --debug
        """
    )

    # Input/Output arguments
    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="OCR text file, or '-' to read from stdin"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="JSON output file (default: stdout)"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    # Extraction scope
    scope = parser.add_mutually_exclusive_group()
    scope.add_argument(
        "--fields-only",
        action="store_true",
        help="Extract header fields only"
    )
    scope.add_argument(
        "--items-only",
        action="store_true",
        help="Extract line items only"
    )

    # Logging options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log errors"
    )

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Initialize configuration and logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    config = ConfigurationManager(args.config)
    logger = setup_logger_from_config()

    if args.debug:
        logger.setLevel(logging.DEBUG)
        for handler in logger.handlers:
            handler.setLevel(logging.DEBUG)
    elif args.quiet:
        logger.setLevel(logging.ERROR)

    logger.debug(f"Version: {config.get('project.version', '1.0.0')}")
    logger.debug(f"Input: {args.input}")
    return config


def read_input(source: str) -> str:
    """
    Read OCR text from a file or stdin.

    Args:
        source: File path, or '-' for stdin.

    Returns:
        OCR text.

    Raises:
        FileNotFoundError: If the input file doesn't exist.
    """
    if source == "-":
        return sys.stdin.read()

    path = Path(source)
    if not path.is_file():
        raise FileNotFoundError(f"Input file not found: {path}")
    return path.read_text(encoding="utf-8", errors="replace")


def run_extraction(
    text: str,
    fields_only: bool = False,
    items_only: bool = False
) -> Dict[str, Any]:
    """
    Run the extraction engine on one OCR text.

    Args:
        text: Raw OCR text.
        fields_only: Skip line items.
        items_only: Skip header fields.

    Returns:
        JSON-ready dictionary.

    Example:
        >>> result = run_extraction("Invoice No: INV-2024-00123")
        >>> result['header']['invoice_number']
        'INV-2024-00123'
    """
    from invoice_ocr import InvoiceEngine

    engine = InvoiceEngine()

    if fields_only:
        return {'header': engine.extract_fields(text).to_dict()}
    if items_only:
        return {'line_items': [item.to_dict() for item in engine.extract_line_items(text)]}
    return engine.extract(text).to_dict()


def write_output(result: Dict[str, Any], destination: Optional[str]) -> None:
    """Write the result as JSON to a file or stdout."""
    payload = json.dumps(result, indent=2, ensure_ascii=False)

    if destination is None:
        sys.stdout.write(payload + "\n")
        return

    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload + "\n", encoding="utf-8")


def main(argv: Optional[list] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = parse_arguments(argv)

    try:
        initialize_system(args)
        logger = get_logger(__name__)

        text = read_input(args.input)
        result = run_extraction(text, args.fields_only, args.items_only)
        write_output(result, args.output)

        if args.output:
            logger.info(f"Results written to {args.output}")
        return 0

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except InvoiceExtractionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.debug:
            logging.getLogger(LOGGER_NAMESPACE).exception("Unhandled error")
        return 1


if __name__ == "__main__":
    sys.exit(main())
