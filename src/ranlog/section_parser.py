"""Section parsers: document text -> typed records, one function per kind.

Each parser runs the kind's :class:`~ranlog.section_locator.SectionPattern`
over the text, tokenizes the candidate lines and builds records with their
derived numeric fields and parse-time anomaly flag. Parsers are pure: the
same text always yields the same records, nothing is cached, and malformed
input never raises (bad lines are skipped, bad numbers become NaN).

Public API:
    parse_section(kind, text, source="")   dispatch by section kind
    parse_link_perf, parse_board_sfp, parse_fru_radio, parse_mfitr,
    parse_mfar                             per-kind entry points
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TypeAlias

from ranlog.classifier import (
    LINK_LOSS_FLAG_THRESHOLD,
    MFITR_DELTA_THRESHOLD,
    VSWR_FLAG_THRESHOLD,
    link_loss_exceeds,
    mfar_has_issue,
    sfp_power_low,
)
from ranlog.numeric import (
    NOT_A_NUMBER,
    parse_decimal,
    parse_first_decimal,
    parse_leading_decimal,
)
from ranlog.parsing_types import (
    BoardSfpRecord,
    FruRadioRecord,
    LinkPerfRecord,
    MfarRecord,
    MfitrRecord,
    Record,
    SectionKind,
    ensure_kind,
)
from ranlog.section_locator import (
    BOARD_SFP_PATTERN,
    FRU_RADIO_PATTERN,
    LINK_PERF_PATTERN,
    MFAR_PATTERN,
    MFITR_PATTERN,
    LocatedLine,
    locate,
)
from ranlog.tokenizers import (
    MFAR_ROW_START_RE,
    MFAR_VERDICT_RE,
    salvage_mfar,
    tokenize_board_sfp,
    tokenize_fru_radio,
    tokenize_link_perf,
    tokenize_mfar,
    tokenize_mfitr,
)

log = logging.getLogger(__name__)

# Return loss inside the VSWR column: "1.8(12.3)"
_RL_GROUP_RE: re.Pattern[str] = re.compile(r"\(([^)]+)\)")


# ---------------------------------------------------------------------------
# link_perf
# ---------------------------------------------------------------------------


def _link_perf_record(fields: list[str], source: str) -> LinkPerfRecord:
    dl = parse_decimal(fields[15])
    ul = parse_decimal(fields[16])
    return LinkPerfRecord(
        *fields,
        dl_loss_value=dl,
        ul_loss_value=ul,
        low_loss=link_loss_exceeds(dl, ul, LINK_LOSS_FLAG_THRESHOLD),
        source=source,
    )


def parse_link_perf(text: str, *, source: str = "") -> list[LinkPerfRecord]:
    """Parse every link performance (WL) section in *text*."""
    return [
        _link_perf_record(tokenize_link_perf(ln.text), source)
        for ln in locate(text, LINK_PERF_PATTERN)
    ]


# ---------------------------------------------------------------------------
# board_sfp
# ---------------------------------------------------------------------------


def _board_sfp_record(fields: list[str], source: str) -> BoardSfpRecord:
    tx = parse_decimal(fields[14])
    rx = parse_decimal(fields[15])
    return BoardSfpRecord(
        *fields,
        tx_dbm_value=tx,
        rx_dbm_value=rx,
        low_power=sfp_power_low(fields[0], tx, rx),
        source=source,
    )


def parse_board_sfp(text: str, *, source: str = "") -> list[BoardSfpRecord]:
    """Parse every board/SFP section in *text*; short rows are dropped."""
    records: list[BoardSfpRecord] = []
    for ln in locate(text, BOARD_SFP_PATTERN):
        fields = tokenize_board_sfp(ln.text)
        if fields is not None:
            records.append(_board_sfp_record(fields, source))
    return records


# ---------------------------------------------------------------------------
# fru_radio
# ---------------------------------------------------------------------------


def split_vswr(vswr: str) -> tuple[float, float]:
    """Split ``"1.8(12.3)"`` into (VSWR magnitude, return loss).

    The return loss is the first number inside the parentheses, so
    ``"1.8(RL 12.3)"`` also yields 12.3. Either value is NaN when absent:
    ``"1.8"`` -> (1.8, nan).
    """
    if not vswr:
        return NOT_A_NUMBER, NOT_A_NUMBER
    vswr_value = parse_leading_decimal(vswr)
    rl_value = NOT_A_NUMBER
    m = _RL_GROUP_RE.search(vswr)
    if m:
        rl_value = parse_first_decimal(m.group(1))
    return vswr_value, rl_value


def _fru_radio_record(fields: list[str], source: str) -> FruRadioRecord:
    vswr_value, rl_value = split_vswr(fields[6])
    return FruRadioRecord(
        *fields,
        vswr_value=vswr_value,
        rl_value=rl_value,
        high_vswr=vswr_value > VSWR_FLAG_THRESHOLD,
        source=source,
    )


def parse_fru_radio(text: str, *, source: str = "") -> list[FruRadioRecord]:
    """Parse every FRU radio metrics section in *text*."""
    return [
        _fru_radio_record(tokenize_fru_radio(ln.text), source)
        for ln in locate(text, FRU_RADIO_PATTERN)
    ]


# ---------------------------------------------------------------------------
# mfitr
# ---------------------------------------------------------------------------


def parse_mfitr(text: str, *, source: str = "") -> list[MfitrRecord]:
    """Parse every mfitr interference section in *text*."""
    records: list[MfitrRecord] = []
    for ln in locate(text, MFITR_PATTERN):
        fields = tokenize_mfitr(ln.text)
        if fields is None:
            continue
        delta_value = parse_decimal(fields[10])
        records.append(MfitrRecord(
            *fields,
            delta_value=delta_value,
            high_delta=delta_value > MFITR_DELTA_THRESHOLD,
            source=source,
        ))
    return records


# ---------------------------------------------------------------------------
# mfar -- multi-line reassembly
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MfarBuffer:
    """Fold state for mfar row reassembly.

    ``text`` is the unterminated row collected so far ("" when idle) and
    ``span`` the section span it belongs to; a buffer never outlives its span.
    """

    text: str = ""
    span: int = 0


def _mfar_record(fields: list[str], source: str) -> MfarRecord:
    return MfarRecord(
        *fields,
        has_issue=mfar_has_issue(fields[15]),
        source=source,
    )


def mfar_step(
    buffer: MfarBuffer, line: LocatedLine, source: str = "",
) -> tuple[MfarBuffer, list[MfarRecord]]:
    """Feed one candidate line to the reassembler.

    Returns the next buffer and the records completed by this line (zero,
    one, or two when a salvaged row is flushed by a new row start that is
    itself complete).
    """
    out: list[MfarRecord] = []
    pending = buffer.text if buffer.span == line.span else ""
    if buffer.text and not pending:
        log.debug("mfar: unterminated row dropped at section end: %r", buffer.text)

    if MFAR_ROW_START_RE.match(line.raw):
        if pending.strip():
            salvaged = salvage_mfar(pending)
            if salvaged is not None:
                out.append(_mfar_record(salvaged, source))
            else:
                log.debug("mfar: incomplete row discarded: %r", pending)
        pending = line.raw
    else:
        pending = f"{pending} {line.raw}" if pending else line.raw

    if MFAR_VERDICT_RE.search(pending):
        fields = tokenize_mfar(pending)
        if fields is not None:
            out.append(_mfar_record(fields, source))
        else:
            log.debug("mfar: row dropped (fewer than 15 columns): %r", pending)
        return MfarBuffer(span=line.span), out
    return MfarBuffer(text=pending, span=line.span), out


def parse_mfar(text: str, *, source: str = "") -> list[MfarRecord]:
    """Parse every mfar antenna feeder section in *text*.

    Rows wrapped over several physical lines are rejoined until the
    Passed/Failed verdict appears; see :func:`mfar_step`.
    """
    records: list[MfarRecord] = []
    buffer = MfarBuffer()
    seen_span = 0
    for ln in locate(text, MFAR_PATTERN):
        if ln.span != seen_span:
            log.debug("mfar: section %d starts before line %d", ln.span, ln.line_number)
            seen_span = ln.span
        buffer, done = mfar_step(buffer, ln, source)
        records.extend(done)
    if buffer.text:
        log.debug("mfar: unterminated row dropped at end of text: %r", buffer.text)
    return records


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

SectionParser: TypeAlias = Callable[..., Iterable[Record]]

SECTION_PARSERS: dict[SectionKind, SectionParser] = {
    "link_perf": parse_link_perf,
    "board_sfp": parse_board_sfp,
    "fru_radio": parse_fru_radio,
    "mfitr": parse_mfitr,
    "mfar": parse_mfar,
}


def parse_section(kind: str, text: str, *, source: str = "") -> list[Record]:
    """Parse all records of section *kind* from *text*.

    Raises:
        ValueError: *kind* is not a known section kind.
    """
    parser = SECTION_PARSERS[ensure_kind(kind)]
    return list(parser(text or "", source=source))
