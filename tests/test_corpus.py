"""Tests for ranlog.corpus module."""
from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

import pytest

from ranlog.cell_refs import ReferenceCellSet
from ranlog.config import ScanConfig
from ranlog.corpus import DirectoryStore, DocumentReadError, TelemetryCorpus
from ranlog.parsing_types import BoardSfpRecord, LinkPerfRecord
from tests.samples import BOARD_ONLY, CAPTURE


class FailingStore:
    """Store whose second document cannot be read."""

    def list_documents(self) -> list[str]:
        return ["a.log", "b.log"]

    def read_document(self, doc_id: str) -> str:
        if doc_id == "b.log":
            raise DocumentReadError(doc_id, "permission denied")
        return BOARD_ONLY


class TestDirectoryStore:
    def test_lists_captures_sorted(self, capture_dir: Path) -> None:
        store = DirectoryStore(capture_dir)
        assert store.list_documents() == ["CS0AT1041_sdir.log", "site_b.txt"]

    def test_extension_filter(self, capture_dir: Path) -> None:
        store = DirectoryStore(capture_dir, extensions=(".MD",))
        assert store.list_documents() == ["notes.md"]

    def test_subdirectories_ignored(self, capture_dir: Path) -> None:
        (capture_dir / "nested.log").mkdir()
        assert "nested.log" not in DirectoryStore(capture_dir).list_documents()

    def test_missing_root(self, tmp_path: Path) -> None:
        assert DirectoryStore(tmp_path / "nope").list_documents() == []

    def test_read(self, capture_dir: Path) -> None:
        store = DirectoryStore(capture_dir)
        assert store.read_document("site_b.txt") == BOARD_ONLY

    def test_read_missing(self, capture_dir: Path) -> None:
        with pytest.raises(DocumentReadError) as exc_info:
            DirectoryStore(capture_dir).read_document("gone.log")
        assert exc_info.value.doc_id == "gone.log"

    @pytest.mark.parametrize("doc_id", ["", "../secret.log", "sub/a.log"])
    def test_rejects_paths(self, capture_dir: Path, doc_id: str) -> None:
        with pytest.raises(DocumentReadError, match="not a document name"):
            DirectoryStore(capture_dir).read_document(doc_id)

    def test_undecodable_bytes_replaced(self, tmp_path: Path) -> None:
        (tmp_path / "latin.log").write_bytes(b"caf\xe9\n")
        assert DirectoryStore(tmp_path).read_document("latin.log") == "caf\ufffd\n"

    def test_from_config(self, capture_dir: Path) -> None:
        config = ScanConfig(documents_dir=capture_dir, extensions=(".txt",))
        store = DirectoryStore.from_config(config)
        assert store.root == capture_dir
        assert store.list_documents() == ["site_b.txt"]


class TestTelemetryCorpusParse:
    def test_parse_is_pure(self, capture_dir: Path) -> None:
        corpus = TelemetryCorpus(DirectoryStore(capture_dir))
        first = corpus.parse("link_perf", CAPTURE)
        assert first == corpus.parse("link_perf", CAPTURE)
        assert all(r.source == "" for r in first)

    def test_parse_file_tags_source(self, capture_dir: Path) -> None:
        corpus = TelemetryCorpus(DirectoryStore(capture_dir))
        records = corpus.parse_file("board_sfp", "site_b.txt")
        assert len(records) == 2
        assert {r.source for r in records} == {"site_b.txt"}

    def test_parse_file_unreadable(self, caplog: pytest.LogCaptureFixture) -> None:
        corpus = TelemetryCorpus(FailingStore())
        with caplog.at_level(logging.WARNING, logger="ranlog.corpus"):
            assert corpus.parse_file("board_sfp", "b.log") == []
        assert "permission denied" in caplog.text

    def test_unknown_kind(self, capture_dir: Path) -> None:
        corpus = TelemetryCorpus(DirectoryStore(capture_dir))
        with pytest.raises(ValueError):
            corpus.parse_file("alarms", "site_b.txt")


class TestTelemetryCorpusAggregate:
    def test_union_over_documents(self, capture_dir: Path) -> None:
        corpus = TelemetryCorpus(DirectoryStore(capture_dir))
        records = corpus.aggregate("board_sfp")
        assert [r.source for r in records] == [
            "CS0AT1041_sdir.log", "CS0AT1041_sdir.log", "site_b.txt", "site_b.txt",
        ]
        assert all(isinstance(r, BoardSfpRecord) for r in records)

    def test_anomalies_across_documents(self, capture_dir: Path) -> None:
        corpus = TelemetryCorpus(DirectoryStore(capture_dir))
        rows = corpus.anomalies("board_sfp")
        assert len(rows) == 2
        assert {r.source for r in rows} == {"CS0AT1041_sdir.log", "site_b.txt"}

    def test_filter_by_document(self, capture_dir: Path) -> None:
        corpus = TelemetryCorpus(DirectoryStore(capture_dir))
        rows = corpus.anomalies("board_sfp", "site_b.txt")
        assert len(rows) == 1
        assert rows[0].ril == "Radio-S7-1"

    def test_unlisted_document_yields_nothing(self, capture_dir: Path) -> None:
        corpus = TelemetryCorpus(DirectoryStore(capture_dir))
        assert corpus.aggregate("board_sfp", "notes.md") == []

    def test_unreadable_document_skipped(self) -> None:
        corpus = TelemetryCorpus(FailingStore())
        records = corpus.aggregate("board_sfp")
        assert {r.source for r in records} == {"a.log"}

    def test_files_added_between_calls(self, capture_dir: Path) -> None:
        corpus = TelemetryCorpus(DirectoryStore(capture_dir))
        before = len(corpus.aggregate("link_perf"))
        (capture_dir / "again.log").write_text(CAPTURE, encoding="utf-8")
        assert len(corpus.aggregate("link_perf")) == 2 * before

    def test_empty_corpus(self, tmp_path: Path) -> None:
        corpus = TelemetryCorpus(DirectoryStore(tmp_path))
        assert corpus.list_documents() == []
        assert corpus.aggregate("mfar") == []


class TestTelemetryCorpusCells:
    def _cell_less_link(self, corpus: TelemetryCorpus) -> LinkPerfRecord:
        rec = corpus.parse_file("link_perf", "CS0AT1041_sdir.log")[1]
        assert isinstance(rec, LinkPerfRecord)
        return replace(rec, link="", wl1="", wl2="", tt="")

    def test_legacy_fallback_enabled_by_default(self, capture_dir: Path) -> None:
        corpus = TelemetryCorpus(DirectoryStore(capture_dir))
        rec = self._cell_less_link(corpus)
        assert corpus.extract_reference_cells(rec) == ReferenceCellSet(ab="CS0AE2/CS0AN2")

    def test_legacy_fallback_disabled(self, capture_dir: Path) -> None:
        corpus = TelemetryCorpus(
            DirectoryStore(capture_dir), legacy_ril_fallback_enabled=False,
        )
        assert not corpus.extract_reference_cells(self._cell_less_link(corpus))

    def test_from_config(self, capture_dir: Path) -> None:
        config = ScanConfig(documents_dir=capture_dir, legacy_ril_fallback=False)
        corpus = TelemetryCorpus.from_config(config)
        assert corpus.list_documents() == ["CS0AT1041_sdir.log", "site_b.txt"]
        assert not corpus.extract_reference_cells(self._cell_less_link(corpus))

    def test_classify_delegates(self, capture_dir: Path) -> None:
        corpus = TelemetryCorpus(DirectoryStore(capture_dir))
        rows = corpus.aggregate("link_perf")
        assert [corpus.classify(r) for r in rows] == [True, False, True]
