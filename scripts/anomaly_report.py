#!/usr/bin/env python3
"""Report anomalous rows found in node CLI capture files.

Parses every capture in the documents directory, keeps the rows whose
metrics cross their thresholds and prints them as JSON. The default view
is the overview of one capture (the first one when --document is not
given); --cells switches to the reference-cell report.

Usage:
    # Overview of the first capture
    python3 scripts/anomaly_report.py --documents uploads

    # Whole corpus, link and board tables only
    python3 scripts/anomaly_report.py --documents uploads --all \
      --kind link_perf --kind board_sfp

    # Reference cells for one capture, also exported to DuckDB
    python3 scripts/anomaly_report.py --documents uploads --cells \
      --document CS0AT1041_sdir.log --duckdb out/anomalies.duckdb

Structured JSON output goes to stdout; human messages go to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import fields
from pathlib import Path
from typing import Any

import duckdb

from ranlog.config import ConfigError, load_config
from ranlog.corpus import TelemetryCorpus
from ranlog.io_utils import dumps_pretty, save_jsonl
from ranlog.parsing_types import (
    RECORD_TYPES,
    SECTION_KINDS,
    Record,
    SectionKind,
    record_to_dict,
)
from ranlog.report import build_cell_report, build_overview, selected_anomalies

log = logging.getLogger("anomaly_report")


def dump_json(obj: Any) -> None:
    sys.stdout.buffer.write(dumps_pretty(obj))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Report anomalous rows found in node CLI capture files.",
    )
    parser.add_argument(
        "--documents", type=Path, default=None,
        help="Directory of .txt/.log captures (default: $RANLOG_DOCUMENTS_DIR or ./uploads)",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="Optional JSON scan configuration",
    )
    parser.add_argument(
        "--document", default=None,
        help="Restrict to one capture file name",
    )
    parser.add_argument(
        "--all", action="store_true",
        help="Aggregate the whole corpus instead of defaulting to the first capture",
    )
    parser.add_argument(
        "--kind", action="append", choices=SECTION_KINDS, default=None,
        help="Section kind to include (repeatable; default: all kinds)",
    )
    parser.add_argument(
        "--cells", action="store_true",
        help="Print the reference-cell report instead of the overview",
    )
    parser.add_argument(
        "--no-legacy-fallback", action="store_true",
        help="Do not derive cells from RiL for *AT* captures",
    )
    parser.add_argument(
        "--jsonl", type=Path, default=None,
        help="Also write the reported records as JSON Lines to this path",
    )
    parser.add_argument(
        "--duckdb", type=Path, default=None,
        help="Also write one table per section kind to this DuckDB file",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Debug logging to stderr",
    )
    return parser


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------


def _sql_type(py_type: Any) -> str:
    if py_type in (float, "float"):
        return "DOUBLE"
    if py_type in (bool, "bool"):
        return "BOOLEAN"
    return "VARCHAR"


def write_duckdb(rows: dict[SectionKind, list[Record]], path: Path) -> dict[str, int]:
    """Write one table per kind (replacing existing tables). Returns row counts."""
    path.parent.mkdir(parents=True, exist_ok=True)
    counts: dict[str, int] = {}
    conn = duckdb.connect(str(path))
    try:
        for kind, records in rows.items():
            cols = fields(RECORD_TYPES[kind])
            ddl = ", ".join(f"\"{c.name}\" {_sql_type(c.type)}" for c in cols)
            conn.execute(f"CREATE OR REPLACE TABLE {kind} ({ddl})")
            if records:
                placeholders = ", ".join("?" for _ in cols)
                conn.executemany(
                    f"INSERT INTO {kind} VALUES ({placeholders})",
                    [tuple(record_to_dict(r).values()) for r in records],
                )
            counts[kind] = len(records)
    finally:
        conn.close()
    return counts


def write_jsonl(rows: dict[SectionKind, list[Record]], path: Path) -> int:
    lines = [
        {"kind": kind, **record_to_dict(r)}
        for kind, records in rows.items()
        for r in records
    ]
    return save_jsonl(lines, path)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config(
            args.config,
            documents_dir=args.documents,
            legacy_ril_fallback=False if args.no_legacy_fallback else None,
        )
    except (ConfigError, OSError) as exc:
        log.error("Invalid configuration: %s", exc)
        sys.exit(2)

    if not config.documents_dir.is_dir():
        log.error("Documents directory not found: %s", config.documents_dir)
        sys.exit(1)

    corpus = TelemetryCorpus.from_config(config)
    kinds: tuple[SectionKind, ...] = tuple(args.kind) if args.kind else SECTION_KINDS

    if args.cells:
        report = build_cell_report(corpus, args.document)
        log.info(
            "Cell report for %s: %s",
            report.selected or "all captures",
            ", ".join(f"{k}={v}" for k, v in report.counts.items()),
        )
        dump_json(report.to_dict())
        rows: dict[SectionKind, list[Record]] = {
            k: selected_anomalies(corpus, k, report.selected) for k in kinds
        }
    else:
        overview = build_overview(
            corpus, args.document, kinds=kinds, default_to_first=not args.all,
        )
        log.info(
            "Overview for %s: %d captures, %d anomalous rows",
            overview.selected or "all captures",
            len(overview.documents),
            sum(len(v) for v in overview.rows.values()),
        )
        dump_json(overview.to_dict())
        rows = {k: list(v) for k, v in overview.rows.items()}

    if args.jsonl is not None:
        n = write_jsonl(rows, args.jsonl)
        log.info("Wrote %d records to %s", n, args.jsonl)
    if args.duckdb is not None:
        counts = write_duckdb(rows, args.duckdb)
        log.info("Wrote %s to %s", counts, args.duckdb)


if __name__ == "__main__":
    main()
