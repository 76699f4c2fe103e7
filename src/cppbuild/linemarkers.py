"""Recover a file's own lines from C preprocessor output.

GNU-style preprocessors announce where the following text comes from with
line markers of the form::

    # <line> "<path>" [flags]

Scanning the output forward, every marker switches attribution to the file
it names. Only lines attributed to the target file are kept; the marker
lines themselves never are. Each return to the target (after an ``#include``
finishes, for instance) opens a new span, and spans are joined in the order
the preprocessor emitted them.

Origin paths are compared as the literal text between the quotes. No path
normalisation is applied, so the target must be spelled exactly as it was
given to the preprocessor.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto

_MARKER_RE = re.compile(r'^# (?P<line>\d+) "(?P<path>(?:[^"\\]|\\.)*)"(?P<flags>.*)$')


class ScanState(Enum):
    OUTSIDE_TARGET = auto()
    INSIDE_TARGET = auto()


@dataclass(frozen=True)
class LineMarker:
    line: int
    path: str
    flags: tuple[str, ...] = ()


def parse_line_marker(line: str) -> LineMarker | None:
    match = _MARKER_RE.match(line)
    if match is None:
        return None
    return LineMarker(int(match.group("line")), match.group("path"), tuple(match.group("flags").split()))


def is_line_marker(line: str) -> bool:
    return _MARKER_RE.match(line) is not None


def _target_marker_re(target: str) -> re.Pattern[str]:
    return re.compile(r'^# \d+ "' + re.escape(target) + '"')


class LineMarkerScanner:
    def __init__(self, target: str) -> None:
        self.target = target
        self.state = ScanState.OUTSIDE_TARGET
        # Every marker naming the target, repeats included.
        self.target_markers = 0
        self._target_re = _target_marker_re(target)

    def feed(self, line: str) -> bool:
        """Advance over one output line and report whether it is kept."""
        if not is_line_marker(line):
            return self.state is ScanState.INSIDE_TARGET
        self.state = ScanState.OUTSIDE_TARGET
        if self._target_re.match(line) is not None:
            self.state = ScanState.INSIDE_TARGET
            self.target_markers += 1
        return False


@dataclass(frozen=True)
class ScanResult:
    """Filtered text plus how many markers named the target.

    ``target_markers`` counts marker lines, not spans with content: a resync
    marker repeating the target (GCC emits one after a run of blank lines)
    counts again.
    """

    text: str
    target_markers: int
    retained: int


def output_lines(raw: str) -> list[str]:
    """Split captured output into lines without treating form feeds as breaks."""
    lines = raw.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


def scan(lines: Iterable[str], target: str) -> ScanResult:
    scanner = LineMarkerScanner(target)
    kept: list[str] = []
    for line in lines:
        if scanner.feed(line):
            kept.append(line)
            kept.append("\n")
    return ScanResult("".join(kept), scanner.target_markers, len(kept) // 2)


def reconstitute(lines: Iterable[str], target: str) -> str:
    return scan(lines, target).text
