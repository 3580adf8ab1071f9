"""Report data sets built on top of the corpus.

Two views are served to the front end (rendering is not done here):

* **overview**: per kind, the anomalous records of the selected capture.
  With no selection the first capture in the listing is used.
* **cell report**: anomalies reduced to the columns operators triage on,
  each row carrying its reference cells. Radio and link rows without any
  resolvable cell are dropped; board rows are kept regardless.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from ranlog.classifier import classify
from ranlog.corpus import TelemetryCorpus
from ranlog.parsing_types import (
    SECTION_KINDS,
    BoardSfpRecord,
    FruRadioRecord,
    LinkPerfRecord,
    MfarRecord,
    MfitrRecord,
    Record,
    SectionKind,
    ensure_kind,
    record_to_dict,
)


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Overview:
    """Anomalous records per kind for one selected capture (or all)."""

    documents: tuple[str, ...]
    selected: str | None
    rows: dict[SectionKind, tuple[Record, ...]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "documents": list(self.documents),
            "selected": self.selected,
            "rows": {
                kind: [record_to_dict(r) for r in recs]
                for kind, recs in self.rows.items()
            },
        }


def build_overview(
    corpus: TelemetryCorpus,
    document: str | None = None,
    *,
    kinds: tuple[str, ...] = SECTION_KINDS,
    default_to_first: bool = True,
) -> Overview:
    """Collect the anomalous rows of every kind for *document*.

    Args:
        corpus: The capture corpus.
        document: Capture to show. When None and *default_to_first* is set,
            the first listed capture is selected; on an empty corpus nothing
            is selected.
        kinds: Section kinds to include.
        default_to_first: Disable to aggregate the whole corpus when no
            document is given.
    """
    documents = tuple(corpus.list_documents())
    selected = (document or "").strip() or None
    if selected is None and default_to_first and documents:
        selected = documents[0]

    rows: dict[SectionKind, tuple[Record, ...]] = {}
    for kind in kinds:
        k = ensure_kind(kind)
        rows[k] = tuple(r for r in corpus.aggregate(k, selected) if classify(r))
    return Overview(documents=documents, selected=selected, rows=rows)


# ---------------------------------------------------------------------------
# Cell report
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RadioCellRow:
    ref_cell: str
    vswr: str
    radio: str
    board: str
    rf: str
    source: str


@dataclass(frozen=True, slots=True)
class LinkCellRow:
    ref_cells: str
    dl_loss: str
    ul_loss: str
    length: str
    source: str


@dataclass(frozen=True, slots=True)
class BoardCellRow:
    ref_cells: str
    board: str
    tx_dbm: str
    rx_dbm: str
    wl: str
    source: str


@dataclass(frozen=True, slots=True)
class CellReport:
    """Reference-cell report for one capture or the whole corpus."""

    documents: tuple[str, ...]
    selected: str | None
    radio: tuple[RadioCellRow, ...] = ()
    link: tuple[LinkCellRow, ...] = ()
    board: tuple[BoardCellRow, ...] = ()
    mfar: tuple[MfarRecord, ...] = ()
    mfitr: tuple[MfitrRecord, ...] = ()
    counts: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "documents": list(self.documents),
            "selected": self.selected,
            "radio": [asdict(r) for r in self.radio],
            "link": [asdict(r) for r in self.link],
            "board": [asdict(r) for r in self.board],
            "mfar": [record_to_dict(r) for r in self.mfar],
            "mfitr": [record_to_dict(r) for r in self.mfitr],
            "counts": dict(self.counts),
        }


def _records(corpus: TelemetryCorpus, kind: SectionKind, document: str | None) -> list[Record]:
    # A named capture is parsed directly, listed or not.
    if document:
        return corpus.parse_file(kind, document)
    return corpus.aggregate(kind)


def selected_anomalies(
    corpus: TelemetryCorpus, kind: SectionKind, document: str | None = None,
) -> list[Record]:
    """Anomalous *kind* records of *document*, or of the whole corpus."""
    return [r for r in _records(corpus, kind, document) if classify(r)]


def build_cell_report(corpus: TelemetryCorpus, document: str | None = None) -> CellReport:
    """Anomalies with their reference cells, for *document* or the corpus."""
    selected = (document or "").strip() or None

    radio: list[RadioCellRow] = []
    for r in _records(corpus, "fru_radio", selected):
        if not isinstance(r, FruRadioRecord) or not classify(r):
            continue
        cells = corpus.extract_reference_cells(r)
        if cells.ab:
            radio.append(RadioCellRow(
                ref_cell=cells.ab, vswr=r.vswr, radio=r.fru,
                board=r.board, rf=r.rf, source=r.source,
            ))

    link: list[LinkCellRow] = []
    for r in _records(corpus, "link_perf", selected):
        if not isinstance(r, LinkPerfRecord) or not classify(r):
            continue
        cells = corpus.extract_reference_cells(r)
        if cells:
            link.append(LinkCellRow(
                ref_cells=str(cells), dl_loss=r.dl_loss, ul_loss=r.ul_loss,
                length=r.length, source=r.source,
            ))

    board: list[BoardCellRow] = []
    for r in _records(corpus, "board_sfp", selected):
        if not isinstance(r, BoardSfpRecord) or not classify(r):
            continue
        board.append(BoardCellRow(
            ref_cells=str(corpus.extract_reference_cells(r)), board=r.board,
            tx_dbm=r.tx_dbm, rx_dbm=r.rx_dbm, wl=r.wl, source=r.source,
        ))

    mfar = tuple(
        r for r in selected_anomalies(corpus, "mfar", selected)
        if isinstance(r, MfarRecord)
    )
    mfitr = tuple(
        r for r in selected_anomalies(corpus, "mfitr", selected)
        if isinstance(r, MfitrRecord)
    )

    return CellReport(
        documents=tuple(corpus.list_documents()),
        selected=selected,
        radio=tuple(radio),
        link=tuple(link),
        board=tuple(board),
        mfar=mfar,
        mfitr=mfitr,
        counts={
            "radio": len(radio),
            "link": len(link),
            "board": len(board),
            "mfar": len(mfar),
            "mfitr": len(mfitr),
        },
    )
