"""
Format and persist found identities.

Supported formats:
- Human-readable text block (appended to a file)
- CSV row, with a header written once when the file is first created
"""

import csv
import logging
import os
import sys
from typing import Optional, TextIO

from nostrvanity.state import MatchEvent

logger = logging.getLogger(__name__)

CSV_HEADER = ["pattern", "npub", "nsec", "hex_pubkey", "attempts", "time_seconds"]


def format_result(event: MatchEvent) -> str:
    """Human-readable block for one match."""
    return (
        "✨ Found vanity address!\n"
        f"Pattern: {event.pattern.value}\n"
        f"npub: {event.candidate.npub}\n"
        f"nsec: {event.candidate.nsec}\n"
        f"Hex pubkey: {event.candidate.hex_pubkey}\n"
        f"Attempts: {event.attempts}\n"
        f"Time: {event.elapsed:.2f}s\n"
        f"Speed: {event.rate:.0f} keys/sec\n"
        "---"
    )


def csv_row(event: MatchEvent) -> list[str]:
    return [
        event.pattern.value,
        event.candidate.npub,
        event.candidate.nsec,
        event.candidate.hex_pubkey,
        str(event.attempts),
        f"{event.elapsed:.2f}",
    ]


def _restrict(path: str) -> None:
    try:
        os.chmod(path, 0o600)
    except OSError:
        pass  # Windows: chmod not fully supported


def save_result_text(event: MatchEvent, path: str) -> str:
    """Append the text block for a match.

    Returns the absolute path of the file.
    """
    abs_path = os.path.abspath(path)
    os.makedirs(os.path.dirname(abs_path) or ".", exist_ok=True)
    with open(abs_path, "a", encoding="utf-8") as f:
        f.write(format_result(event) + "\n")
    _restrict(abs_path)
    return abs_path


def save_result_csv(event: MatchEvent, path: str) -> str:
    """Append a CSV row for a match, writing the header if the file is new.

    Returns the absolute path of the file.
    """
    abs_path = os.path.abspath(path)
    os.makedirs(os.path.dirname(abs_path) or ".", exist_ok=True)
    existed = os.path.exists(abs_path)
    with open(abs_path, "a", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, lineterminator="\n")
        if not existed:
            writer.writerow(CSV_HEADER)
        writer.writerow(csv_row(event))
    _restrict(abs_path)
    return abs_path


class OutputSink:
    """Consumes MatchEvents: prints them and optionally appends them to a file."""

    def __init__(
        self,
        output: Optional[str] = None,
        csv_format: bool = False,
        quiet: bool = False,
        stream: Optional[TextIO] = None,
    ):
        self.output = output
        self.csv_format = csv_format
        self.quiet = quiet
        self.stream = stream
        self.consumed = 0
        self.saved_path: Optional[str] = None

    def consume(self, event: MatchEvent) -> None:
        stream = self.stream or sys.stdout
        if self.quiet:
            print(event.candidate.npub, file=stream)
        else:
            print(f"\n{format_result(event)}", file=stream)

        if self.output:
            if self.csv_format:
                self.saved_path = save_result_csv(event, self.output)
            else:
                self.saved_path = save_result_text(event, self.output)
            logger.info("Saved %s to %s", event.candidate.npub, self.saved_path)

        self.consumed += 1

    __call__ = consume
