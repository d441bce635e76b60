#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Command line entry point.

    python -m HackerNewsParser 3067403 saved_page.html --output-dir HN_OUTPUT
"""
import sys
import logging
import argparse
from functools import partial
from typing import List, Optional

from HackerNewsParser.Fetcher import RequestsFetcher
from HackerNewsParser.Extractor import HackerNewsItemExtractor
from HackerNewsParser.ItemPipeline import ItemPipeline, BASE_OUTPUT_DIR, save_item_to_disk


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='hn-item-parser',
        description='Extract a Hacker News item and its comments from item pages.'
    )
    parser.add_argument('targets', nargs='+',
                        help='Numeric item IDs to fetch, or paths to saved item pages.')
    parser.add_argument('--output-dir', default=BASE_OUTPUT_DIR,
                        help=f'Directory for the saved items (default: {BASE_OUTPUT_DIR}).')
    parser.add_argument('--proxy', default=None,
                        help='Proxy URL, e.g. http://127.0.0.1:8080')
    parser.add_argument('--timeout', type=int, default=10,
                        help='Request timeout in seconds.')
    parser.add_argument('--delay', type=float, default=RequestsFetcher.DEFAULT_DELAY,
                        help='Minimum seconds between two item requests.')
    parser.add_argument('--json-only', action='store_true',
                        help='Only write the JSON file, skip Markdown.')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging.')
    return parser


def run_pipeline(item_ids: List[int],
                 paths: List[str],
                 output_dir: str,
                 proxy: Optional[str] = None,
                 timeout: int = 10,
                 json_only: bool = False,
                 delay: float = RequestsFetcher.DEFAULT_DELAY) -> int:
    """Runs the pipeline and returns the number of targets that did not yield an item."""
    handler = partial(save_item_to_disk, in_markdown=not json_only, in_json=True, root_dir=output_dir)
    fetcher = RequestsFetcher(proxy=proxy, timeout_s=timeout, delay_s=delay) if item_ids else None
    pipeline = ItemPipeline(fetcher, HackerNewsItemExtractor())

    results = []
    try:
        if paths:
            results += pipeline.extract_files(paths, handler)
        if item_ids:
            results += pipeline.fetch_items(item_ids, handler)
    finally:
        pipeline.shutdown()

    for source, result in results:
        print(f"\n{source}\n{result}")

    expected = len(set(item_ids)) + len(set(paths))
    succeeded = sum(1 for _, result in results if result.success)
    return expected - succeeded


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    item_ids = [int(target) for target in args.targets if target.isdigit()]
    paths = [target for target in args.targets if not target.isdigit()]

    failed = run_pipeline(item_ids, paths, args.output_dir,
                          proxy=args.proxy, timeout=args.timeout, json_only=args.json_only,
                          delay=args.delay)
    return 1 if failed else 0


if __name__ == '__main__':
    sys.exit(main())
