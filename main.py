import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from datetime import date, datetime
from typing import List, Optional

import pandas as pd
from loguru import logger

from listing_intel.config import DATA_DIR, LOG_LEVEL
from listing_intel.keywords import compute_keyword_opportunity, extract_keywords, metadata_from_record
from listing_intel.parsers import (
    has_next_page,
    parse_app_page,
    parse_category_page,
    parse_search_page,
    should_use_all_page,
)
from listing_intel.similarity import compute_similarity_scores
from listing_intel.storage import CsvSimilarityStore


def _read_markup(path: str) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()


def _json_default(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Cannot serialize {type(value).__name__}")


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=_json_default))


def cmd_parse_app(args: argparse.Namespace) -> int:
    record = parse_app_page(_read_markup(args.file), args.slug)
    _print_json(asdict(record))
    return 0


def cmd_parse_category(args: argparse.Namespace) -> int:
    html = _read_markup(args.file)
    record = parse_category_page(html, args.url)
    data = asdict(record)
    data["should_use_all_page"] = should_use_all_page(html)
    data["has_next_page"] = has_next_page(html)
    if record.first_page_apps:
        data["opportunity"] = asdict(compute_keyword_opportunity(record.first_page_apps, record.app_count))
    _print_json(data)
    return 0


def cmd_parse_search(args: argparse.Namespace) -> int:
    record = parse_search_page(_read_markup(args.file), args.keyword, args.page, args.offset)
    data = asdict(record)
    data["opportunity"] = asdict(compute_keyword_opportunity(record.apps, record.total_results))
    _print_json(data)
    return 0


def cmd_keywords(args: argparse.Namespace) -> int:
    """
    Parse an app page and write its ranked keyword suggestions.

    Prints the table, and writes it to CSV when --output is given.
    """
    record = parse_app_page(_read_markup(args.file), args.slug)
    keywords = extract_keywords(metadata_from_record(record, subtitle=args.subtitle))

    df = pd.DataFrame(
        [
            {
                "keyword": kw.keyword,
                "score": kw.score,
                "count": kw.count,
                "sources": ",".join(s.field for s in kw.sources),
            }
            for kw in keywords[: args.limit]
        ],
        columns=["keyword", "score", "count", "sources"],
    )
    if args.output:
        df.to_csv(args.output, index=False)
        logger.info(f"Wrote {len(df)} keywords to {args.output}")
    print(df.to_string(index=False))
    return 0


def cmd_similarity(args: argparse.Namespace) -> int:
    store = CsvSimilarityStore(args.data_dir)
    run = asyncio.run(compute_similarity_scores(store, triggered_by=args.triggered_by))
    print(f"Run {run.id} {run.status}: {run.metadata}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Marketplace listing extraction and scoring")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("parse-app", help="Parse an app detail page to JSON")
    p.add_argument("file")
    p.add_argument("--slug", required=True)
    p.set_defaults(func=cmd_parse_app)

    p = sub.add_parser("parse-category", help="Parse a category page to JSON")
    p.add_argument("file")
    p.add_argument("--url", required=True)
    p.set_defaults(func=cmd_parse_category)

    p = sub.add_parser("parse-search", help="Parse a keyword search results page and score its opportunity")
    p.add_argument("file")
    p.add_argument("--keyword", required=True)
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--offset", type=int, default=0, help="Organic results on earlier pages")
    p.set_defaults(func=cmd_parse_search)

    p = sub.add_parser("keywords", help="Suggest keywords from an app page")
    p.add_argument("file")
    p.add_argument("--slug", required=True)
    p.add_argument("--subtitle", default=None)
    p.add_argument("--limit", type=int, default=50)
    p.add_argument("--output", default=None)
    p.set_defaults(func=cmd_keywords)

    p = sub.add_parser("similarity", help="Recompute similarity scores for tracked competitor pairs")
    p.add_argument("--data-dir", default=DATA_DIR)
    p.add_argument("--triggered-by", default="cli")
    p.set_defaults(func=cmd_similarity)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point.

    - Configures logging.
    - Dispatches to the selected subcommand.
    """
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=LOG_LEVEL, format="<green>{time:HH:mm:ss}</green> | <level>{level}</level> | <level>{message}</level>")

    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
