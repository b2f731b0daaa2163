#!/usr/bin/env python3
"""
CLI for compiling article URLs into a PDF or emailing it
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from document_service import ClippingsService
from utils.errors import ClippingsError
from utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Compile web articles into a single PDF')
    subparsers = parser.add_subparsers(dest='action', required=True)

    compile_parser = subparsers.add_parser('compile', help='Write the PDF to a file')
    compile_parser.add_argument('urls', nargs='+', help='Article URLs')
    compile_parser.add_argument('-o', '--output', help='Output file (default: Clippings-YYYY-MM-DD.pdf)')
    compile_parser.add_argument('--no-quiz', action='store_true', help='Skip comprehension questions')

    email_parser = subparsers.add_parser('email', help='Email the PDF')
    email_parser.add_argument('urls', nargs='+', help='Article URLs')
    email_parser.add_argument('--to', help='Recipient (default: DEFAULT_KINDLE_EMAIL)')
    email_parser.add_argument('--no-quiz', action='store_true', help='Skip comprehension questions')

    parser.add_argument('--log-level', default=None, help='Logging level (default: LOG_LEVEL)')
    return parser


async def run(args, service: ClippingsService) -> int:
    include_quiz = not args.no_quiz

    if args.action == 'compile':
        document = await service.compile(args.urls, include_quiz=include_quiz)
        output = Path(args.output or document.filename)
        output.write_bytes(document.content)
        print(f"Wrote {output} ({document.page_count} pages)")
    else:
        document = await service.email(args.urls, email=args.to, include_quiz=include_quiz)
        print(f"Sent {document.filename}")

    for url in document.skipped:
        print(f"Skipped: {url}")
    return 0


def main(argv=None, service: ClippingsService = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level)

    try:
        return asyncio.run(run(args, service or ClippingsService()))
    except (ClippingsError, ValueError) as e:
        print(f"Error: {e}")
        for url in getattr(e, 'skipped', []):
            print(f"Skipped: {url}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
