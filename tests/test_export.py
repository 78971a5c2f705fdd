import io
import os
import stat
import sys

import pytest

from nostrvanity.core import Candidate
from nostrvanity.export import (
    OutputSink,
    csv_row,
    format_result,
    save_result_csv,
    save_result_text,
)
from nostrvanity.matcher import MatchKind, Pattern
from nostrvanity.state import MatchEvent

NPUB = "npub1acexyz"
NSEC = "nsec1secret"
HEX = "ab" * 32


def make_event(attempts=4000, elapsed=2.0):
    return MatchEvent(
        candidate=Candidate(npub=NPUB, nsec=NSEC, hex_pubkey=HEX),
        pattern=Pattern.create("ace", MatchKind.PREFIX),
        attempts=attempts,
        elapsed=elapsed,
    )


def test_format_result():
    assert format_result(make_event()) == (
        "✨ Found vanity address!\n"
        "Pattern: ace\n"
        f"npub: {NPUB}\n"
        f"nsec: {NSEC}\n"
        f"Hex pubkey: {HEX}\n"
        "Attempts: 4000\n"
        "Time: 2.00s\n"
        "Speed: 2000 keys/sec\n"
        "---"
    )


def test_format_result_zero_elapsed():
    assert "Speed: 0 keys/sec" in format_result(make_event(attempts=1, elapsed=0.0))


def test_csv_row():
    assert csv_row(make_event(elapsed=1.234)) == ["ace", NPUB, NSEC, HEX, "4000", "1.23"]


def test_csv_header_written_once(tmp_path):
    path = tmp_path / "found.csv"
    save_result_csv(make_event(), str(path))
    save_result_csv(make_event(attempts=5), str(path))
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines == [
        "pattern,npub,nsec,hex_pubkey,attempts,time_seconds",
        f"ace,{NPUB},{NSEC},{HEX},4000,2.00",
        f"ace,{NPUB},{NSEC},{HEX},5,2.00",
    ]


def test_csv_no_header_for_existing_file(tmp_path):
    path = tmp_path / "found.csv"
    path.write_text("", encoding="utf-8")
    save_result_csv(make_event(), str(path))
    assert path.read_text(encoding="utf-8").splitlines() == [
        f"ace,{NPUB},{NSEC},{HEX},4000,2.00",
    ]


def test_text_output_appends(tmp_path):
    path = tmp_path / "sub" / "found.txt"
    saved = save_result_text(make_event(), str(path))
    save_result_text(make_event(), str(path))
    assert saved == os.path.abspath(path)
    content = path.read_text(encoding="utf-8")
    assert content == (format_result(make_event()) + "\n") * 2


@pytest.mark.skipif(sys.platform == "win32", reason="chmod not supported")
def test_output_file_is_private(tmp_path):
    path = tmp_path / "found.txt"
    save_result_text(make_event(), str(path))
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_sink_prints_and_saves(tmp_path):
    stream = io.StringIO()
    path = tmp_path / "found.csv"
    sink = OutputSink(output=str(path), csv_format=True, stream=stream)
    sink.consume(make_event())
    sink(make_event())
    assert sink.consumed == 2
    assert sink.saved_path == str(path)
    assert stream.getvalue().count("✨ Found vanity address!") == 2
    assert len(path.read_text(encoding="utf-8").splitlines()) == 3


def test_sink_quiet_prints_npub_only():
    stream = io.StringIO()
    OutputSink(quiet=True, stream=stream).consume(make_event())
    assert stream.getvalue() == NPUB + "\n"
