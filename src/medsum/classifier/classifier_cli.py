"""Classify every page of a local PDF and print the results as JSON.

Useful for tuning thresholds or a YAML pattern pack against real articles
without running the model service::

    medsum-classify article.pdf --patterns packs/pt.yaml --summary
"""

from __future__ import annotations

import argparse
import json
import sys
from collections import Counter
from pathlib import Path

from medsum.patterns import default_pattern_pack, load_pattern_pack
from pipeline.ingestion.pdf import PdfTextExtractor
from pipeline.ingestion.segmenter import is_empty_page, pages_from_extraction

from .page_classifier import PageClassifier
from .types import ClassifierThresholds

__all__ = ["build_parser", "main"]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="medsum-classify", description=__doc__.splitlines()[0])
    p.add_argument("pdf", type=Path, help="PDF file to classify")
    p.add_argument("--patterns", type=Path, default=None, help="YAML pattern pack extending the defaults")
    p.add_argument(
        "--reference-cutoff",
        type=float,
        default=ClassifierThresholds.pure_reference_confidence,
        help="Confidence at or above which a page counts as pure references",
    )
    p.add_argument("--pages", type=str, default=None, help="Comma separated page numbers to keep (e.g. 1,4,9)")
    p.add_argument("--summary", action="store_true", help="Print only per-classification counts")
    return p


def _page_filter(spec: str | None) -> set[int] | None:
    if not spec:
        return None
    return {int(part) for part in spec.split(",") if part.strip()}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if not args.pdf.is_file():
        sys.stderr.write(f"File not found: {args.pdf}\n")
        return 1

    patterns = load_pattern_pack(args.patterns) if args.patterns else default_pattern_pack()
    classifier = PageClassifier(
        patterns,
        ClassifierThresholds(pure_reference_confidence=args.reference_cutoff),
    )
    doc = PdfTextExtractor().extract(args.pdf.read_bytes())
    wanted = _page_filter(args.pages)

    records = []
    for page in pages_from_extraction(doc):
        if wanted is not None and page.page_number not in wanted:
            continue
        if is_empty_page(page.raw_text):
            records.append({"page_number": page.page_number, "classification": None, "reasons": ["empty page"]})
            continue
        records.append(classifier.classify(page.raw_text, page.page_number).to_dict())

    if args.summary:
        counts = Counter(str(r["classification"]) for r in records)
        payload: object = {"file": args.pdf.name, "pages": len(records), "counts": dict(counts)}
    else:
        payload = records
    sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
