"""Record types for the five section kinds.

Every record is a frozen, slotted dataclass: the positional text fields in
column order, then derived numeric fields, then the parse-time anomaly flag
(where the kind has one), then provenance. Text fields are always trimmed
strings (never None); derived numerics use the NaN sentinel from
:mod:`ranlog.numeric`.

Kinds:
  link_perf  ``sdir`` link performance (WL) table, 19 ``;`` columns
  board_sfp  ``sdir`` board/SFP optical metrics, 17 ``;`` columns
  fru_radio  ``sdir`` FRU radio metrics, 10 ``;`` columns
  mfitr      interference (PUSCH/PUCCH) table, whitespace columns
  mfar       antenna feeder check, whitespace columns, wrapped rows
"""
from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Any, Literal, TypeAlias

SectionKind: TypeAlias = Literal["link_perf", "board_sfp", "fru_radio", "mfitr", "mfar"]

# Report order
SECTION_KINDS: tuple[SectionKind, ...] = (
    "link_perf",
    "board_sfp",
    "fru_radio",
    "mfar",
    "mfitr",
)


def ensure_kind(kind: str) -> SectionKind:
    """Validate a section kind string supplied by a caller."""
    if kind not in SECTION_KINDS:
        raise ValueError(
            f"unknown section kind {kind!r}; expected one of {', '.join(SECTION_KINDS)}"
        )
    return kind  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Column layouts
# ---------------------------------------------------------------------------

LINK_PERF_COLUMNS: tuple[str, ...] = (
    "ID", "LINK", "RiL", "WL1", "TEMP1", "TXbs1", "TXdBm1", "RXdBm1", "BER1",
    "WL2", "TEMP2", "TXbs2", "TXdBm2", "RXdBm2", "BER2", "DlLoss", "UlLoss",
    "LENGTH", "TT",
)

BOARD_SFP_COLUMNS: tuple[str, ...] = (
    "ID", "RiL", "BOARD", "SFPLNH", "PORT", "VENDOR", "VENDORPROD", "REV",
    "SERIAL", "DATE", "ERICSSONPROD", "WL", "TEMP", "TXbs", "TXdBm", "RXdBm",
    "BER",
)

FRU_RADIO_COLUMNS: tuple[str, ...] = (
    "FRU", "LNH", "BOARD", "RF", "BP", "TX (W/dBm)", "VSWR (RL)", "RX (dBm)",
    "UEs/gUEs", "Sector/AntennaGroup/Cells (State:CellIds:PCIs)",
)

MFITR_COLUMNS: tuple[str, ...] = (
    "CELL", "SC", "FRU", "BOARD", "PUSCH", "PUCCH", "A", "B", "C", "D", "DELTA",
)

MFAR_COLUMNS: tuple[str, ...] = (
    "SC", "SE", "Tx/Rx", "BrPair", "RfPort1", "RfPort2", "HW", "Serial",
    "Cell (State)", "Samples", "Med", "Mean", "SDev", "Pol", "Res", "Issue",
)

LINK_PERF_ARITY = len(LINK_PERF_COLUMNS)   # 19
BOARD_SFP_ARITY = len(BOARD_SFP_COLUMNS)   # 17
FRU_RADIO_ARITY = len(FRU_RADIO_COLUMNS)   # 10


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LinkPerfRecord:
    """One row of the link performance (WL) table."""

    id: str
    link: str
    ril: str
    wl1: str
    temp1: str
    txbs1: str
    tx_dbm1: str
    rx_dbm1: str
    ber1: str
    wl2: str
    temp2: str
    txbs2: str
    tx_dbm2: str
    rx_dbm2: str
    ber2: str
    dl_loss: str
    ul_loss: str
    length: str
    tt: str
    dl_loss_value: float
    ul_loss_value: float
    low_loss: bool
    source: str = ""


@dataclass(frozen=True, slots=True)
class BoardSfpRecord:
    """One row of the board/SFP optical metrics table."""

    id: str
    ril: str
    board: str
    sfp_lnh: str
    port: str
    vendor: str
    vendor_prod: str
    rev: str
    serial: str
    date: str
    ericsson_prod: str
    wl: str
    temp: str
    txbs: str
    tx_dbm: str
    rx_dbm: str
    ber: str
    tx_dbm_value: float
    rx_dbm_value: float
    low_power: bool
    source: str = ""


@dataclass(frozen=True, slots=True)
class FruRadioRecord:
    """One row of the FRU radio metrics table."""

    fru: str
    lnh: str
    board: str
    rf: str
    bp: str
    tx: str
    vswr: str
    rx: str
    ues_gues: str
    sector_cells: str  # "State:CellIds:PCIs" descriptor, may contain ';'
    vswr_value: float
    rl_value: float
    high_vswr: bool
    source: str = ""


@dataclass(frozen=True, slots=True)
class MfitrRecord:
    """One row of the uplink interference (mfitr) table.

    A..D are optional per-branch readings; absent slots are "".
    """

    cell: str
    sc: str
    fru: str
    board: str
    pusch: str
    pucch: str
    a: str
    b: str
    c: str
    d: str
    delta: str
    delta_value: float
    high_delta: bool
    source: str = ""


@dataclass(frozen=True, slots=True)
class MfarRecord:
    """One reassembled row of the antenna feeder (mfar) table."""

    sc: str
    se: str
    tx_rx: str
    br_pair: str
    rf_port1: str
    rf_port2: str
    hw: str
    serial: str
    cell_state: str
    samples: str
    med: str
    mean: str
    sdev: str
    pol: str
    res: str
    issue: str
    has_issue: bool
    source: str = ""


Record: TypeAlias = (
    LinkPerfRecord | BoardSfpRecord | FruRadioRecord | MfitrRecord | MfarRecord
)

RECORD_TYPES: dict[SectionKind, type] = {
    "link_perf": LinkPerfRecord,
    "board_sfp": BoardSfpRecord,
    "fru_radio": FruRadioRecord,
    "mfitr": MfitrRecord,
    "mfar": MfarRecord,
}


def record_kind(record: Record) -> SectionKind:
    """Return the section kind a record belongs to."""
    for kind, cls in RECORD_TYPES.items():
        if isinstance(record, cls):
            return kind
    raise TypeError(f"not a section record: {type(record).__name__}")


def record_to_dict(record: Record) -> dict[str, Any]:
    """Flatten a record to a JSON-safe dict; NaN numerics become None."""
    out: dict[str, Any] = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if isinstance(value, float) and math.isnan(value):
            value = None
        out[f.name] = value
    return out
