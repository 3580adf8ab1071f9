#!/usr/bin/env python3
"""Census of section kinds across the capture corpus.

For each capture, counts the records and anomalies found per section kind.
Captures with no records at all usually mean a header variant the locator
does not know yet; they are listed under ``empty``.

Usage:
    python3 scripts/section_census.py --documents uploads
    python3 scripts/section_census.py --documents uploads --kind mfar -v

Structured JSON output goes to stdout; human messages go to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Any

from ranlog.classifier import classify
from ranlog.corpus import DirectoryStore, DocumentReadError
from ranlog.io_utils import dumps_pretty
from ranlog.parsing_types import SECTION_KINDS, SectionKind
from ranlog.section_parser import parse_section

log = logging.getLogger("section_census")


def dump_json(obj: Any) -> None:
    sys.stdout.buffer.write(dumps_pretty(obj))


def census_text(text: str, kinds: tuple[SectionKind, ...]) -> dict[str, dict[str, int]]:
    """Per-kind ``{"records": n, "anomalies": m}`` for one capture's text."""
    out: dict[str, dict[str, int]] = {}
    for kind in kinds:
        records = parse_section(kind, text)
        out[kind] = {
            "records": len(records),
            "anomalies": sum(1 for r in records if classify(r)),
        }
    return out


def build_census(
    store: DirectoryStore, kinds: tuple[SectionKind, ...] = SECTION_KINDS,
) -> dict[str, Any]:
    """Census over every capture in *store*; unreadable captures are listed apart."""
    per_doc: dict[str, dict[str, dict[str, int]]] = {}
    totals: Counter[str] = Counter()
    anomaly_totals: Counter[str] = Counter()
    unreadable: list[str] = []
    empty: list[str] = []

    for doc_id in store.list_documents():
        try:
            text = store.read_document(doc_id)
        except DocumentReadError as exc:
            log.warning("%s", exc)
            unreadable.append(doc_id)
            continue
        counts = census_text(text, kinds)
        per_doc[doc_id] = counts
        if not any(c["records"] for c in counts.values()):
            empty.append(doc_id)
        for kind, c in counts.items():
            totals[kind] += c["records"]
            anomaly_totals[kind] += c["anomalies"]
        log.debug("%s: %s", doc_id, {k: c["records"] for k, c in counts.items()})

    return {
        "documents": per_doc,
        "totals": {k: totals[k] for k in kinds},
        "anomalies": {k: anomaly_totals[k] for k in kinds},
        "empty": empty,
        "unreadable": unreadable,
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Count section records and anomalies per capture file.",
    )
    parser.add_argument(
        "--documents", type=Path, required=True,
        help="Directory of .txt/.log captures",
    )
    parser.add_argument(
        "--kind", action="append", choices=SECTION_KINDS, default=None,
        help="Section kind to count (repeatable; default: all kinds)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if not args.documents.is_dir():
        log.error("Documents directory not found: %s", args.documents)
        sys.exit(1)

    kinds: tuple[SectionKind, ...] = tuple(args.kind) if args.kind else SECTION_KINDS
    census = build_census(DirectoryStore(args.documents), kinds)
    log.info(
        "%d captures, %d without any section records",
        len(census["documents"]), len(census["empty"]),
    )
    dump_json(census)


if __name__ == "__main__":
    main()
