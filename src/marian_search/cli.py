"""Command-line entry point for indexing a manifests file and running queries.

Usage:
    marian-search --manifests manifests.json regex "aggregation pipeline"
    marian-search --manifests manifests.json --scope docs --hits lookup
    marian-search --manifests manifests.json --dictionary en_US.dic regx
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys

import orjson

from marian_search.config import Settings
from marian_search.coordinator import IndexCoordinator
from marian_search.errors import SearchEngineError
from marian_search.observability.logging import configure_logging
from marian_search.observability.tracing import init_tracing
from marian_search.spelling.dictionary import WordListDictionary, dictionary_from_settings


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marian-search",
        description="Index a JSON list of manifests and print ranked results for each query.",
    )
    parser.add_argument("queries", nargs="+", help="Query strings to run against the index")
    parser.add_argument("--manifests", type=Path, required=True, help="JSON file holding a list of manifests")
    parser.add_argument("--dictionary", type=Path, help="Hunspell .dic file or word list for spelling suggestions")
    parser.add_argument(
        "--scope",
        action="append",
        default=[],
        help="Restrict results to a searchProperty (repeatable); default is global search",
    )
    parser.add_argument("--hits", action="store_true", help="Blend HITS link analysis into the ranking")
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> int:
    dictionary = WordListDictionary(args.dictionary) if args.dictionary else dictionary_from_settings(settings)
    coordinator = IndexCoordinator(settings, dictionary=dictionary)

    manifests = orjson.loads(args.manifests.read_bytes())
    try:
        await coordinator.sync(manifests)
        await coordinator.wait_for_spelling()
        for query in args.queries:
            response = coordinator.search(query, args.scope, args.hits)
            payload = {"query": query, **response.model_dump(by_alias=True)}
            sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8") + "\n")
    except SearchEngineError as exc:
        logger.error("%s: %s", exc.code, exc)
        return 1
    finally:
        await coordinator.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.log_level, json_output=settings.log_json)
    init_tracing(service_name="marian-search")
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
