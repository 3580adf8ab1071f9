"""Section boundary scanner for concatenated node CLI exports.

A capture file is several reports pasted one after another (``sdir``,
``mfitr``, ``mfar`` ...), each introduced by a column header line and ended
by the header of whatever report comes next, a trailer line or the session
prompt. Each section kind owns a :class:`SectionPattern`; the scanner is run
once per kind over the same text, so one document can feed several kinds
and a kind can recur any number of times.

The scan is a fold over lines with an explicit :class:`ScanState`::

    OUTSIDE --header--> INSIDE --stop--> OUTSIDE --header--> INSIDE ...

While INSIDE, blank lines, separator runs, repeated headers and lines
without the kind's delimiter are consumed; every other line is yielded as a
:class:`LocatedLine` for the kind's tokenizer.
"""
from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from ranlog.parsing_types import SectionKind

# A full line of 3+ '=' or '-'.
SEPARATOR_RE: re.Pattern[str] = re.compile(r"^(?:={3,}|-{3,})$")

# mfar underlines its columns ("-----  ------  ---"), so only the prefix counts.
SEPARATOR_PREFIX_RE: re.Pattern[str] = re.compile(r"^(?:={3,}|-{3,})")

# Physical line break. Other Unicode breaks (\f, \v, \x85, \u2028 ...) stay inside the line.
LINE_BREAK_RE: re.Pattern[str] = re.compile(r"\r?\n")


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HeaderRule:
    """Header matcher: the line matches when every rule in ``all_of`` is found."""

    all_of: tuple[re.Pattern[str], ...]

    def matches(self, line: str) -> bool:
        return all(rule.search(line) for rule in self.all_of)


@dataclass(frozen=True, slots=True)
class SectionPattern:
    """Boundary rules for one section kind."""

    kind: SectionKind
    header: HeaderRule
    stops: tuple[re.Pattern[str], ...]
    delimiter: str | None = None  # None: whitespace-delimited kind
    separator: re.Pattern[str] = SEPARATOR_RE

    def is_stop(self, line: str) -> bool:
        return any(stop.search(line) for stop in self.stops)


def _semicolon_header(*columns: str) -> HeaderRule:
    """Exact ``;``-separated header; spaces around ``;`` tolerated."""
    body = r"\s*;\s*".join(columns)
    return HeaderRule((re.compile(rf"^{body}\s*$", re.IGNORECASE),))


def _prefix(*columns: str) -> re.Pattern[str]:
    """Stop rule: line starts with the given ``;``-separated columns."""
    return re.compile(r"^" + r"\s*;\s*".join(columns), re.IGNORECASE)


def _words(*patterns: str) -> HeaderRule:
    return HeaderRule(tuple(re.compile(p, re.IGNORECASE) for p in patterns))


LINK_PERF_PATTERN = SectionPattern(
    kind="link_perf",
    header=_semicolon_header(
        "ID", "LINK", "RiL", "WL1", "TEMP1", "TXbs1", "TXdBm1", "RXdBm1",
        "BER1", "WL2", "TEMP2", "TXbs2", "TXdBm2", "RXdBm2", "BER2",
        "DlLoss", "UlLoss", "LENGTH", "TT",
    ),
    stops=(
        _prefix("ID", "T", "RiL"),
        _prefix("ID", "LINK", "RiL", "VENDOR1"),
        _prefix("ID", "RiL", "BOARD", "SFPLNH"),
        _prefix("BOARD", "LNH", "PORT"),
        _prefix("Prio", "ST", "syncRefType"),
        re.compile(r"^AntennaNearUnit", re.IGNORECASE),
        _prefix("XPBOARD", "ST"),
    ),
    delimiter=";",
)

BOARD_SFP_PATTERN = SectionPattern(
    kind="board_sfp",
    header=_semicolon_header(
        "ID", "RiL", "BOARD", "SFPLNH", "PORT", "VENDOR", "VENDORPROD", "REV",
        "SERIAL", "DATE", "ERICSSONPROD", "WL", "TEMP", "TXbs", "TXdBm",
        "RXdBm", "BER",
    ),
    stops=(
        _prefix("ID", "T", "RiL"),
        _prefix("ID", "LINK", "RiL"),
        _prefix("BOARD", "LNH", "PORT"),
        _prefix("Prio", "ST", "syncRefType"),
        re.compile(r"^AntennaNearUnit", re.IGNORECASE),
        _prefix("XPBOARD", "ST"),
    ),
    delimiter=";",
)

FRU_RADIO_PATTERN = SectionPattern(
    kind="fru_radio",
    header=_semicolon_header(
        "FRU", "LNH", "BOARD", "RF", "BP",
        r"TX\s*\(W/dBm\)",
        r"VSWR\s*\(RL\)",
        r"RX\s*\(dBm\)",
        r"UEs/gUEs",
        r"Sector/AntennaGroup/Cells\s*\(State:CellIds:PCIs\)",
    ),
    stops=(
        re.compile(r"^CELL\s+SC\s+FRU\s+BOARD", re.IGNORECASE),
        _prefix("ID", "LINK", "RiL"),
        _prefix("ID", "RiL", "BOARD"),
        _prefix("BOARD", "LNH", "PORT"),
    ),
    delimiter=";",
)

MFITR_PATTERN = SectionPattern(
    kind="mfitr",
    header=_words(
        r"\bCELL\b", r"\bSC\b", r"\bFRU\b", r"\bBOARD\b",
        r"\bPUSCH\b", r"\bPUCCH\b", r"\bDELTA\b",
    ),
    stops=(
        re.compile(r"^Bye\b", re.IGNORECASE),
        re.compile(r"^Output has been logged", re.IGNORECASE),
        re.compile(r"^CS\w+>\s+\w+", re.IGNORECASE),
    ),
)

MFAR_PATTERN = SectionPattern(
    kind="mfar",
    header=_words(
        r"SC\s+SE\s+Tx/Rx",
        r"RfPort1\s*-\s*RfPort2",
        r"Cell\s*\(State\)",
        r"Samples", r"Med", r"Mean", r"SDev", r"Pol", r"Res", r"Issue",
    ),
    stops=(
        re.compile(r"^Total:", re.IGNORECASE),
        _prefix("ID", "LINK", "RiL"),
        _prefix("FRU", "LNH"),
        re.compile(r"^CELL\s+SC\s+FRU\s+BOARD", re.IGNORECASE),
    ),
    separator=SEPARATOR_PREFIX_RE,
)

SECTION_PATTERNS: dict[SectionKind, SectionPattern] = {
    p.kind: p
    for p in (
        LINK_PERF_PATTERN,
        BOARD_SFP_PATTERN,
        FRU_RADIO_PATTERN,
        MFITR_PATTERN,
        MFAR_PATTERN,
    )
}


# ---------------------------------------------------------------------------
# Scan state
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ScanState:
    """Fold state: whether we are inside a section, and which span."""

    inside: bool = False
    span: int = 0  # number of times the section has been entered


@dataclass(frozen=True, slots=True)
class LocatedLine:
    """A candidate record line inside a section span."""

    line_number: int  # 1-based
    span: int
    text: str         # stripped
    raw: str          # right-stripped only; keeps leading alignment


def step(
    state: ScanState, raw: str, pattern: SectionPattern,
) -> tuple[ScanState, bool]:
    """Advance the scan by one line.

    Returns the next state and whether the line is a candidate record line.
    """
    line = raw.strip()
    if not state.inside:
        if line and pattern.header.matches(line):
            return ScanState(inside=True, span=state.span + 1), False
        return state, False
    if not line or pattern.separator.match(line):
        return state, False
    if pattern.is_stop(line):
        return ScanState(inside=False, span=state.span), False
    if pattern.header.matches(line):
        # Repeated header inside an open section (paged output): consumed,
        # never emitted as a record.
        return state, False
    if pattern.delimiter is not None and pattern.delimiter not in line:
        return state, False
    return state, True


def locate(text: str, pattern: SectionPattern) -> Iterator[LocatedLine]:
    """Yield the candidate record lines of every *pattern* span in *text*."""
    state = ScanState()
    for idx, raw in enumerate(LINE_BREAK_RE.split(text), start=1):
        state, is_candidate = step(state, raw, pattern)
        if is_candidate:
            yield LocatedLine(
                line_number=idx,
                span=state.span,
                text=raw.strip(),
                raw=raw.rstrip(),
            )
