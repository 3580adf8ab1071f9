"""Kind-specific record tokenizers.

Each tokenizer turns one candidate line (or, for mfar, one reassembled
logical row) into a list of trimmed fields of the kind's fixed arity, or
returns None when the row cannot be aligned. The correction rules are
heuristics tuned on real ``sdir``/``mfitr``/``mfar`` captures:

- link_perf: the LINK column is sometimes empty and the row shifted right
  by one, or RiL holds the link state (Up/Down/Dn). Either way one column
  at index 1 is dropped. Overflow is folded into TT, short rows padded.
- board_sfp: rows shorter than 17 columns are unusable and dropped.
- fru_radio: the cell descriptor in the last column may itself contain
  ``;``, so the split is capped at 10 fields.
- mfitr: A..D are optional; DELTA is always the last token.
- mfar: see :func:`tokenize_mfar` and :func:`salvage_mfar`.
"""
from __future__ import annotations

import re

from ranlog.parsing_types import (
    BOARD_SFP_ARITY,
    FRU_RADIO_ARITY,
    LINK_PERF_ARITY,
)

_LINK_STATE_RE: re.Pattern[str] = re.compile(r"^(?:up|down|dn)$", re.IGNORECASE)

MFITR_MIN_TOKENS = 9
MFITR_OPTIONAL_SLOTS = 4

MFAR_MIN_TOKENS = 15
MFAR_SALVAGE_MIN_COLUMNS = 12
MFAR_FIELD_COUNT = 14  # fields after SC/SE, Issue included

# "2/4 0 ..." -- SC "2/4", SE "0"
MFAR_ROW_START_RE: re.Pattern[str] = re.compile(r"^\s*\d+/\d+\s+\d+")
MFAR_VERDICT_RE: re.Pattern[str] = re.compile(r"\b(?:Passed|Failed)\b", re.IGNORECASE)

_MFAR_PREFIX_RE: re.Pattern[str] = re.compile(r"^\s*(\S+)\s+(\S+)\s+(.*)$")
_MFAR_SALVAGE_PREFIX_RE: re.Pattern[str] = re.compile(r"^\s*(\S+)\s+(\S+)\s{2,}(.*)$")
_COLUMN_GAP_RE: re.Pattern[str] = re.compile(r"\s{2,}")


def split_semicolons(line: str) -> list[str]:
    return [p.strip() for p in line.split(";")]


def split_limited(line: str, max_parts: int, sep: str = ";") -> list[str]:
    """Split on *sep* into at most *max_parts* trimmed fields.

    The remainder after the last allowed separator stays in the final field,
    separators included.
    """
    return [p.strip() for p in line.split(sep, max_parts - 1)]


def _pad(parts: list[str], arity: int) -> list[str]:
    if len(parts) < arity:
        return parts + [""] * (arity - len(parts))
    return parts


# ---------------------------------------------------------------------------
# ';'-delimited kinds
# ---------------------------------------------------------------------------


def tokenize_link_perf(line: str) -> list[str]:
    """Return exactly 19 fields for a link performance row."""
    parts = split_semicolons(line)
    if parts and parts[0] == "":
        parts = parts[1:]
    if len(parts) >= LINK_PERF_ARITY and (
        parts[1] == "" or _LINK_STATE_RE.match(parts[2])
    ):
        del parts[1]
    if len(parts) > LINK_PERF_ARITY:
        last = LINK_PERF_ARITY - 1
        parts = parts[:last] + [";".join(parts[last:])]
    return _pad(parts, LINK_PERF_ARITY)


def tokenize_board_sfp(line: str) -> list[str] | None:
    """Return the 17 board/SFP fields, or None for a short row."""
    parts = split_semicolons(line)
    if len(parts) < BOARD_SFP_ARITY:
        return None
    return parts[:BOARD_SFP_ARITY]


def tokenize_fru_radio(line: str) -> list[str]:
    """Return exactly 10 FRU radio fields."""
    parts = split_limited(line, FRU_RADIO_ARITY)
    while parts and parts[0] == "":
        parts.pop(0)
    return _pad(parts, FRU_RADIO_ARITY)


# ---------------------------------------------------------------------------
# Whitespace-delimited kinds
# ---------------------------------------------------------------------------


def tokenize_mfitr(line: str) -> list[str] | None:
    """Return CELL, SC, FRU, BOARD, PUSCH, PUCCH, A, B, C, D, DELTA.

    Rows with fewer than 9 tokens are not table rows (banners, wrapped
    comments) and yield None.
    """
    tokens = line.split()
    if len(tokens) < MFITR_MIN_TOKENS:
        return None
    head = tokens[:6]
    rest = tokens[6:]
    delta = rest[-1]
    optional = rest[:-1][:MFITR_OPTIONAL_SLOTS]
    slots = optional + [""] * (MFITR_OPTIONAL_SLOTS - len(optional))
    return head + slots + [delta]


def tokenize_mfar(buffer: str) -> list[str] | None:
    """Map a terminated mfar row to its 16 fields (SC, SE, then 14 more).

    After the SC and SE prefix the whitespace tokens are::

        0 TxRx | 1-2 BrPair | 3 RfPort1 | 4 RfPort2 | 5 HW | 6 Serial |
        7-8 Cell (State) | 9 Samples | 10 Med | 11 Mean | 12 SDev |
        13 Pol | 14 Res | 15.. Issue

    Returns None when fewer than 15 tokens follow the prefix.
    """
    m = _MFAR_PREFIX_RE.match(buffer)
    if not m:
        return None
    sc, se, tail = m.group(1), m.group(2), m.group(3)
    t = tail.split()
    if len(t) < MFAR_MIN_TOKENS:
        return None
    return [
        sc,
        se,
        t[0],
        f"{t[1]} {t[2]}",
        t[3],
        t[4],
        t[5],
        t[6],
        f"{t[7]} {t[8]}",
        t[9],
        t[10],
        t[11],
        t[12],
        t[13],
        t[14],
        " ".join(t[15:]),
    ]


def salvage_mfar(buffer: str) -> list[str] | None:
    """Best-effort parse of an mfar row that never reached its verdict.

    Relies on the original column alignment: two prefix columns, then
    columns separated by runs of 2+ spaces. Needs at least 12 columns after
    the prefix; missing trailing columns are "" and anything past Res is
    joined into Issue.
    """
    m = _MFAR_SALVAGE_PREFIX_RE.match(buffer)
    if not m:
        return None
    columns = [c.strip() for c in _COLUMN_GAP_RE.split(m.group(3)) if c.strip()]
    if len(columns) < MFAR_SALVAGE_MIN_COLUMNS:
        return None
    fixed = columns[:MFAR_FIELD_COUNT - 1]
    fixed += [""] * (MFAR_FIELD_COUNT - 1 - len(fixed))
    issue = " ".join(columns[MFAR_FIELD_COUNT - 1:])
    return [m.group(1), m.group(2), *fixed, issue]
