"""Reference cell extraction for anomalous records.

Operators triage an anomaly by the logical cells it affects. Cell ids are
embedded in free-text columns (WL labels, TT comments, link names) as
``CS0`` + a two-letter family code + digits, e.g. ``CS0AE1041``. Families
come in complementary pairs (the two carriers of a site sector), tried in
priority order; only the first pair with any match is used::

    AB = first AE / first AN     CD = second AE / second AN
    else FM/FT, else AM/AT

FRU radio rows name their cells in the ``State:CellIds:PCIs`` descriptor
instead; the nearest cell is the one after ``FDD=``, else the first cell id.

Some sites report no cell ids at all. For those a legacy rule derives the
AE/AN pair from the ``S<n>-<m>`` radio index in RiL, but only for capture
files whose name contains ``AT``. The rule is a :data:`CellFallback` hook so
callers can drop it (``legacy_ril_fallback=False`` in :class:`ScanConfig`).
"""
from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias

from ranlog.parsing_types import (
    BoardSfpRecord,
    FruRadioRecord,
    LinkPerfRecord,
    MfarRecord,
    MfitrRecord,
    Record,
)

SITE_PREFIX = "CS0"

# Complementary family pairs, in priority order.
FAMILY_PAIRS: tuple[tuple[str, str], ...] = (
    ("AE", "AN"),
    ("FM", "FT"),
    ("AM", "AT"),
)

FAMILY_CODES: frozenset[str] = frozenset(code for pair in FAMILY_PAIRS for code in pair)

_FAMILY_TOKEN_RE: re.Pattern[str] = re.compile(
    SITE_PREFIX + r"(" + "|".join(sorted(FAMILY_CODES)) + r")\d+",
)
_FDD_CELL_RE: re.Pattern[str] = re.compile(r"FDD\s*=\s*(CS\d+[A-Z]{1,2}\d+)", re.IGNORECASE)
_ANY_CELL_RE: re.Pattern[str] = re.compile(r"CS\d+[A-Z]{1,2}\d+")
_RIL_RADIO_RE: re.Pattern[str] = re.compile(r"(?:Radio-)?S(\d+)-(\d+)", re.IGNORECASE)
_LEGACY_SOURCE_RE: re.Pattern[str] = re.compile(r"AT", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ReferenceCellSet:
    """Ordered pair of reference cells; either side may be missing."""

    ab: str | None = None
    cd: str | None = None

    @property
    def cells(self) -> tuple[str, ...]:
        return tuple(c for c in (self.ab, self.cd) if c)

    def __bool__(self) -> bool:
        return bool(self.cells)

    def __str__(self) -> str:
        return " ; ".join(self.cells)


CellFallback: TypeAlias = Callable[[Record], ReferenceCellSet]


# ---------------------------------------------------------------------------
# Family-token matching
# ---------------------------------------------------------------------------


def find_family_tokens(text: str) -> dict[str, list[str]]:
    """Partition the cell tokens in *text* by family code, in order of appearance."""
    by_family: dict[str, list[str]] = {code: [] for code in FAMILY_CODES}
    for m in _FAMILY_TOKEN_RE.finditer(text):
        by_family[m.group(1)].append(m.group(0))
    return by_family


def _join_pair(left: list[str], right: list[str], idx: int) -> str | None:
    a = left[idx] if len(left) > idx else ""
    b = right[idx] if len(right) > idx else ""
    joined = "/".join(x for x in (a, b) if x)
    return joined or None


def pair_cells(text: str) -> ReferenceCellSet:
    """Build the AB/CD pair from the first family pair present in *text*."""
    tokens = find_family_tokens(text)
    for left, right in FAMILY_PAIRS:
        if tokens[left] or tokens[right]:
            return ReferenceCellSet(
                ab=_join_pair(tokens[left], tokens[right], 0),
                cd=_join_pair(tokens[left], tokens[right], 1),
            )
    return ReferenceCellSet()


def nearest_cell(sector_cells: str) -> str:
    """Nearest cell in a ``State:CellIds:PCIs`` descriptor, "" when none."""
    sc = sector_cells or ""
    m = _FDD_CELL_RE.search(sc)
    if m:
        return m.group(1)
    m = _ANY_CELL_RE.search(sc)
    return m.group(0) if m else ""


# ---------------------------------------------------------------------------
# Legacy fallback
# ---------------------------------------------------------------------------


def legacy_ril_fallback(record: Record) -> ReferenceCellSet:
    """Derive ``CS0AE<n>/CS0AN<n>`` from RiL ``S<n>-<m>`` for ``*AT*`` captures."""
    ril = getattr(record, "ril", "")
    if not ril or not _LEGACY_SOURCE_RE.search(record.source):
        return ReferenceCellSet()
    m = _RIL_RADIO_RE.search(ril)
    if not m:
        return ReferenceCellSet()
    n = m.group(1)
    return ReferenceCellSet(ab=f"{SITE_PREFIX}AE{n}/{SITE_PREFIX}AN{n}")


def no_fallback(record: Record) -> ReferenceCellSet:
    return ReferenceCellSet()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _scanned_text(record: Record) -> str:
    match record:
        case LinkPerfRecord():
            parts = (record.tt, record.wl1, record.wl2, record.link)
        case BoardSfpRecord():
            parts = (record.wl,)
        case MfitrRecord():
            parts = (record.cell,)
        case MfarRecord():
            parts = (record.cell_state,)
        case _:
            raise TypeError(f"not a section record: {type(record).__name__}")
    return " ".join(parts)


def extract_reference_cells(
    record: Record,
    *,
    fallback: CellFallback = legacy_ril_fallback,
) -> ReferenceCellSet:
    """Return the reference cells an anomalous *record* points at.

    Args:
        record: Any section record.
        fallback: Called when no cell token is found; defaults to the
            legacy RiL rule. Pass :func:`no_fallback` to disable it.

    Returns:
        A ReferenceCellSet with zero, one or two cells.
    """
    if isinstance(record, FruRadioRecord):
        cell = nearest_cell(record.sector_cells)
        return ReferenceCellSet(ab=cell or None)
    cells = pair_cells(_scanned_text(record))
    if cells:
        return cells
    return fallback(record)
