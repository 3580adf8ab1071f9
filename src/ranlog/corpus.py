"""Capture corpus: document storage and per-kind aggregation.

The corpus is a directory of ``.txt``/``.log`` capture files. Nothing is
indexed or cached: every call lists and re-reads the files it needs, so a
file added or removed between two calls is visible on the second one.

    store = DirectoryStore(Path("uploads"))
    corpus = TelemetryCorpus(store)
    rows = corpus.aggregate("board_sfp")              # whole corpus
    rows = corpus.aggregate("board_sfp", "siteA.log")  # one document

A document that cannot be read contributes no records; the scan goes on.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from ranlog.cell_refs import (
    CellFallback,
    ReferenceCellSet,
    extract_reference_cells,
    legacy_ril_fallback,
    no_fallback,
)
from ranlog.classifier import classify
from ranlog.config import ScanConfig
from ranlog.parsing_types import Record, ensure_kind
from ranlog.section_parser import parse_section

log = logging.getLogger(__name__)


class DocumentReadError(RuntimeError):
    """Raised by a document store when a document cannot be read."""

    def __init__(self, doc_id: str, reason: str) -> None:
        super().__init__(f"cannot read document {doc_id!r}: {reason}")
        self.doc_id = doc_id
        self.reason = reason


class DocumentStore(Protocol):
    """Storage collaborator: lists and reads capture documents."""

    def list_documents(self) -> list[str]: ...

    def read_document(self, doc_id: str) -> str: ...


class DirectoryStore:
    """Filesystem-backed store: one file per document, id = file name."""

    def __init__(
        self,
        root: Path,
        *,
        extensions: tuple[str, ...] = (".txt", ".log"),
        encoding: str = "utf-8",
    ) -> None:
        self._root = root
        self._extensions = tuple(e.lower() for e in extensions)
        self._encoding = encoding

    @classmethod
    def from_config(cls, config: ScanConfig) -> DirectoryStore:
        return cls(
            config.documents_dir,
            extensions=config.extensions,
            encoding=config.encoding,
        )

    @property
    def root(self) -> Path:
        return self._root

    def list_documents(self) -> list[str]:
        """Document ids (file names) in lexicographic order."""
        if not self._root.is_dir():
            return []
        return sorted(
            p.name
            for p in self._root.iterdir()
            if p.is_file() and p.suffix.lower() in self._extensions
        )

    def read_document(self, doc_id: str) -> str:
        # Ids are bare file names; anything path-like is rejected.
        if not doc_id or Path(doc_id).name != doc_id:
            raise DocumentReadError(doc_id, "not a document name")
        path = self._root / doc_id
        try:
            return path.read_text(encoding=self._encoding, errors="replace")
        except (OSError, LookupError) as exc:
            raise DocumentReadError(doc_id, str(exc)) from exc


class TelemetryCorpus:
    """Parse, aggregate and classify section records across a document store."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        legacy_ril_fallback_enabled: bool = True,
    ) -> None:
        self._store = store
        self._fallback: CellFallback = (
            legacy_ril_fallback if legacy_ril_fallback_enabled else no_fallback
        )

    @classmethod
    def from_config(cls, config: ScanConfig) -> TelemetryCorpus:
        return cls(
            DirectoryStore.from_config(config),
            legacy_ril_fallback_enabled=config.legacy_ril_fallback,
        )

    @property
    def store(self) -> DocumentStore:
        return self._store

    def list_documents(self) -> list[str]:
        return self._store.list_documents()

    def parse(self, kind: str, text: str, *, source: str = "") -> list[Record]:
        """Parse *text* as section *kind*; pure."""
        return parse_section(kind, text, source=source)

    def parse_file(self, kind: str, doc_id: str) -> list[Record]:
        """Parse one stored document; read failures yield ``[]``."""
        kind = ensure_kind(kind)
        try:
            text = self._store.read_document(doc_id)
        except DocumentReadError as exc:
            log.warning("%s", exc)
            return []
        records = parse_section(kind, text, source=doc_id)
        log.debug("%s: %d %s records", doc_id, len(records), kind)
        return records

    def aggregate(self, kind: str, document: str | None = None) -> list[Record]:
        """Union of *kind* records over the corpus, each tagged with its source.

        Args:
            kind: Section kind.
            document: When given, restrict to this document id. An id that
                is not listed by the store yields no records.
        """
        kind = ensure_kind(kind)
        doc_ids = self._store.list_documents()
        if document is not None:
            doc_ids = [d for d in doc_ids if d == document]
        records: list[Record] = []
        for doc_id in doc_ids:
            records.extend(self.parse_file(kind, doc_id))
        return records

    def anomalies(self, kind: str, document: str | None = None) -> list[Record]:
        """Aggregated records of *kind* that :func:`classify` reports."""
        return [r for r in self.aggregate(kind, document) if classify(r)]

    def classify(self, record: Record) -> bool:
        return classify(record)

    def extract_reference_cells(self, record: Record) -> ReferenceCellSet:
        return extract_reference_cells(record, fallback=self._fallback)