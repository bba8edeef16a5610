"""CLI helper to check what the phone extractor mines from a message dump."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from contact_enricher.extraction import StopLists, build_corpus  # noqa: E402  (import after path fix)
from contact_enricher.models import MessageRecord  # noqa: E402
from contact_enricher.orchestrator import mine_numbers  # noqa: E402

LOGGER = logging.getLogger(__name__)


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Mine phone numbers from a JSON dump of messages.")
    parser.add_argument(
        "messages",
        type=Path,
        help="JSON file holding a list of {\"sender\": ..., \"body\": ...} objects",
    )
    parser.add_argument("--stop-phone", action="append", default=[], help="Operator number to ignore")
    parser.add_argument("--stop-domain", action="append", default=[], help="Operator domain to ignore")
    parser.add_argument(
        "--output-json",
        type=Path,
        help="Optional path to save the numbers found per sender",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Console log level",
    )
    return parser.parse_args(argv)


def run_extraction(args: argparse.Namespace) -> None:
    logging.basicConfig(level=getattr(logging, args.log_level))

    raw = json.loads(args.messages.read_text(encoding="utf-8"))
    messages = [MessageRecord(sender=str(item.get("sender", "")), body=str(item.get("body", ""))) for item in raw]
    stop_lists = StopLists.from_values(phones=args.stop_phone, domains=args.stop_domain)

    corpus = build_corpus(messages, stop_lists.domains)
    numbers = mine_numbers(corpus, stop_lists)
    pretty_print_numbers(numbers)

    if args.output_json:
        args.output_json.write_text(json.dumps(numbers, indent=2, ensure_ascii=False))
        LOGGER.info("Wrote numbers JSON to %s", args.output_json)


def pretty_print_numbers(numbers: dict) -> None:
    if not any(numbers.values()):
        print("No phone numbers found.")
        return
    for email, found in numbers.items():
        if not found:
            continue
        print(f"{email}:")
        for number in found:
            print(f"  - {number}")


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv or sys.argv[1:])
    try:
        run_extraction(args)
    except Exception as exc:  # pragma: no cover - CLI convenience
        LOGGER.exception("Extraction failed: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
