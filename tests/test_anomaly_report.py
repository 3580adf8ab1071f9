"""Tests for anomaly_report.py: CLI, JSONL and DuckDB exports."""
from __future__ import annotations

from pathlib import Path

import duckdb
import orjson
import pytest

from ranlog.config import ENV_DOCUMENTS_DIR, ENV_LEGACY_RIL_FALLBACK
from ranlog.io_utils import load_jsonl
from ranlog.section_parser import parse_board_sfp, parse_link_perf
from scripts.anomaly_report import _sql_type, build_parser, main, write_duckdb, write_jsonl
from tests.samples import CAPTURE


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ENV_DOCUMENTS_DIR, raising=False)
    monkeypatch.delenv(ENV_LEGACY_RIL_FALLBACK, raising=False)


class TestSqlType:
    def test_types(self) -> None:
        assert _sql_type("float") == "DOUBLE"
        assert _sql_type(float) == "DOUBLE"
        assert _sql_type("bool") == "BOOLEAN"
        assert _sql_type("str") == "VARCHAR"


class TestBuildParser:
    def test_defaults(self) -> None:
        args = build_parser().parse_args([])
        assert args.documents is None
        assert args.kind is None
        assert not args.cells

    def test_kind_choices(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--kind", "alarms"])


class TestWriteDuckdb:
    def test_tables(self, tmp_path: Path) -> None:
        rows = {
            "link_perf": parse_link_perf(CAPTURE, source="a.log"),
            "board_sfp": [],
        }
        path = tmp_path / "out" / "anomalies.duckdb"
        counts = write_duckdb(rows, path)
        assert counts == {"link_perf": 3, "board_sfp": 0}

        con = duckdb.connect(str(path), read_only=True)
        try:
            got = con.execute(
                "SELECT link, dl_loss_value, low_loss, source FROM link_perf ORDER BY link"
            ).fetchall()
            empty = con.execute("SELECT COUNT(*) FROM board_sfp").fetchone()
        finally:
            con.close()
        assert got[0] == ("L1", -4.0, True, "a.log")
        assert empty == (0,)

    def test_replaces_existing_table(self, tmp_path: Path) -> None:
        path = tmp_path / "anomalies.duckdb"
        write_duckdb({"board_sfp": parse_board_sfp(CAPTURE)}, path)
        write_duckdb({"board_sfp": parse_board_sfp(CAPTURE)[:1]}, path)
        con = duckdb.connect(str(path), read_only=True)
        try:
            assert con.execute("SELECT COUNT(*) FROM board_sfp").fetchone() == (1,)
        finally:
            con.close()


class TestWriteJsonl:
    def test_kind_column(self, tmp_path: Path) -> None:
        path = tmp_path / "rows.jsonl"
        n = write_jsonl({"board_sfp": parse_board_sfp(CAPTURE)}, path)
        assert n == 2
        rows = load_jsonl(path)
        assert {r["kind"] for r in rows} == {"board_sfp"}
        assert rows[0]["tx_dbm_value"] == -15.2


class TestMain:
    def test_overview(
        self, capture_dir: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        main(["--documents", str(capture_dir)])
        data = orjson.loads(capsys.readouterr().out)
        assert data["selected"] == "CS0AT1041_sdir.log"
        assert len(data["rows"]["link_perf"]) == 2

    def test_all_with_kind(
        self, capture_dir: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        main(["--documents", str(capture_dir), "--all", "--kind", "board_sfp"])
        data = orjson.loads(capsys.readouterr().out)
        assert data["selected"] is None
        assert list(data["rows"]) == ["board_sfp"]
        assert len(data["rows"]["board_sfp"]) == 2

    def test_cells_with_exports(
        self, capture_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        db = tmp_path / "exports" / "anomalies.duckdb"
        jsonl = tmp_path / "exports" / "rows.jsonl"
        main([
            "--documents", str(capture_dir), "--cells",
            "--document", "CS0AT1041_sdir.log",
            "--duckdb", str(db), "--jsonl", str(jsonl),
        ])
        data = orjson.loads(capsys.readouterr().out)
        assert data["counts"]["link"] == 2
        assert len(load_jsonl(jsonl)) == 8
        con = duckdb.connect(str(db), read_only=True)
        try:
            assert con.execute("SELECT COUNT(*) FROM mfar").fetchone() == (2,)
        finally:
            con.close()

    def test_documents_from_environment(
        self,
        capture_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv(ENV_DOCUMENTS_DIR, str(capture_dir))
        main(["--document", "site_b.txt"])
        data = orjson.loads(capsys.readouterr().out)
        assert data["selected"] == "site_b.txt"

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--documents", str(tmp_path / "nope")])
        assert exc_info.value.code == 1

    def test_bad_config(self, tmp_path: Path) -> None:
        config = tmp_path / "scan.json"
        config.write_bytes(orjson.dumps({"documents": "x"}))
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(config)])
        assert exc_info.value.code == 2

    def test_cells_exports_unlisted_document(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        docs = tmp_path / "docs"
        docs.mkdir()
        (docs / "cap.dat").write_text(CAPTURE, encoding="utf-8")
        jsonl = tmp_path / "rows.jsonl"
        main([
            "--documents", str(docs), "--cells",
            "--document", "cap.dat", "--jsonl", str(jsonl),
        ])
        data = orjson.loads(capsys.readouterr().out)
        assert data["documents"] == []
        assert data["counts"]["link"] == 2
        rows = load_jsonl(jsonl)
        assert len(rows) == 8
        assert {r["source"] for r in rows} == {"cap.dat"}

    def test_config_not_json(self, tmp_path: Path) -> None:
        config = tmp_path / "scan.json"
        config.write_bytes(b"{not json")
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(config)])
        assert exc_info.value.code == 2
