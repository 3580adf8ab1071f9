"""Anomaly thresholds and predicates for parsed section records.

Two thresholds exist for link loss and VSWR: a strict one used for the
parse-time flag stored on the record (``low_loss``, ``high_vswr``) and a
slightly looser one used when selecting rows for reports. The pairs are
kept apart on purpose; merging them changes which rows operators see.

    kind        parse-time flag              query-time filter
    link_perf   DlLoss or UlLoss < -3.5      < -3.49
    board_sfp   ID == TN and TX/RX < -13.99  same
    fru_radio   VSWR > 1.5                   > 1.49
    mfar        Issue not empty/"passed"     same
    mfitr       DELTA > 3.9                  same

All comparisons are against NaN-safe floats, so a missing or garbled value
never classifies as an anomaly.
"""
from __future__ import annotations

from collections.abc import Iterable

from ranlog.numeric import is_number, parse_decimal, parse_leading_decimal
from ranlog.parsing_types import (
    BoardSfpRecord,
    FruRadioRecord,
    LinkPerfRecord,
    MfarRecord,
    MfitrRecord,
    Record,
)

# ── link_perf ───────────────────────────────────────────────────────────
LINK_LOSS_FLAG_THRESHOLD = -3.5
LINK_LOSS_DISPLAY_THRESHOLD = -3.49

# ── board_sfp ───────────────────────────────────────────────────────────
SFP_POWER_THRESHOLD = -13.99
SFP_TRANSPORT_ID = "TN"

# ── fru_radio ───────────────────────────────────────────────────────────
VSWR_FLAG_THRESHOLD = 1.5
VSWR_DISPLAY_THRESHOLD = 1.49

# ── mfitr / mfar ────────────────────────────────────────────────────────
MFITR_DELTA_THRESHOLD = 3.9
MFAR_PASSED = "passed"


# ---------------------------------------------------------------------------
# Per-kind predicates
# ---------------------------------------------------------------------------


def link_loss_exceeds(dl: float, ul: float, threshold: float) -> bool:
    return dl < threshold or ul < threshold


def sfp_power_low(record_id: str, tx: float, rx: float) -> bool:
    if record_id.strip().upper() != SFP_TRANSPORT_ID:
        return False
    return tx < SFP_POWER_THRESHOLD or rx < SFP_POWER_THRESHOLD


def mfar_has_issue(issue: str) -> bool:
    text = issue.strip().lower()
    return bool(text) and text != MFAR_PASSED


def _fru_vswr(record: FruRadioRecord) -> float:
    # Records built elsewhere may carry only the raw column.
    v = record.vswr_value
    if not is_number(v):
        v = parse_leading_decimal(record.vswr)
    return v


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def classify(record: Record) -> bool:
    """Query-time anomaly predicate: should *record* be reported?"""
    match record:
        case LinkPerfRecord():
            return link_loss_exceeds(
                record.dl_loss_value, record.ul_loss_value,
                LINK_LOSS_DISPLAY_THRESHOLD,
            )
        case BoardSfpRecord():
            return sfp_power_low(
                record.id, parse_decimal(record.tx_dbm), parse_decimal(record.rx_dbm),
            )
        case FruRadioRecord():
            return _fru_vswr(record) > VSWR_DISPLAY_THRESHOLD
        case MfarRecord():
            return mfar_has_issue(record.issue)
        case MfitrRecord():
            return parse_decimal(record.delta) > MFITR_DELTA_THRESHOLD
    raise TypeError(f"not a section record: {type(record).__name__}")


def is_flagged(record: Record) -> bool:
    """Parse-time anomaly flag, as stored on the record."""
    match record:
        case LinkPerfRecord():
            return record.low_loss
        case BoardSfpRecord():
            return record.low_power
        case FruRadioRecord():
            return record.high_vswr
        case MfarRecord():
            return record.has_issue
        case MfitrRecord():
            return record.high_delta
    raise TypeError(f"not a section record: {type(record).__name__}")


def filter_anomalies(records: Iterable[Record]) -> list[Record]:
    """Keep the records :func:`classify` reports."""
    return [r for r in records if classify(r)]
