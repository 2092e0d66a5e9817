import asyncio
import argparse
import logging
import sys
from core.config import load_config, load_headers
from core.dataset import JsonLinesDataset
from core.engine import ClassificationEngine
from core.errors import ConfigError, RulesError
from core.pipeline import PagePipeline
from fetch.crawler import Crawler
from rules.rules_loader import load_registry


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Crawl pages and detect front-end frameworks, CDNs, analytics and platforms")
    parser.add_argument("urls", nargs="*", help="Start URLs (override start_urls from the input file)")
    parser.add_argument("--input", type=str, help="Path to a JSON crawl input file")
    parser.add_argument("--max-requests", type=int, dest="max_requests_per_crawl", help="Maximum number of pages to fetch")
    parser.add_argument("--enqueue-links", action="store_const", const=True, dest="enqueue_links", help="Follow links found on fetched pages")
    parser.add_argument("--allow-external", action="store_const", const=False, dest="follow_internal_only", help="Follow links to other hosts too")
    parser.add_argument("--no-cdn-detection", action="store_const", const=False, dest="detect_cdns_and_libraries", help="Ignore preconnect/preload hints when detecting CDN hosts")
    parser.add_argument("--concurrency", type=int, dest="max_concurrency", help="Number of concurrent requests")
    parser.add_argument("--output", type=str, help="Append JSON lines to this file instead of stdout")
    parser.add_argument("--headers-file", type=str, help="Path to JSON file containing additional HTTP headers (e.g., User-Agent, Cookie)")
    parser.add_argument("--rules", type=str, help="Path to a signature rules YAML file")
    parser.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity level (default: INFO)")
    parser.add_argument("--list-signatures", action="store_true", help="List all signatures and exit")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Logs go to stderr; stdout carries the records
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, args.log_level),
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    try:
        registry = load_registry(args.rules)
    except RulesError as e:
        logger.error(str(e))
        return 2

    if args.list_signatures:
        print("Available signatures:")
        for name in registry.get_all_names():
            signature = registry.get(name)
            print(f"  - {signature.name} ({signature.category or 'uncategorized'})")
        print("\nCDN host signatures:")
        for host in registry.cdn_hosts:
            print(f"  - {host}")
        return 0

    try:
        config = load_config(args.input)
        headers = load_headers(args.headers_file) if args.headers_file else None
        config = config.merged(
            start_urls=args.urls or None,
            max_requests_per_crawl=args.max_requests_per_crawl,
            enqueue_links=args.enqueue_links,
            follow_internal_only=args.follow_internal_only,
            detect_cdns_and_libraries=args.detect_cdns_and_libraries,
            max_concurrency=args.max_concurrency,
            output=args.output,
            headers={**config.headers, **headers} if headers else None,
        )
    except ConfigError as e:
        logger.error(str(e))
        return 2

    logger.info(f"Starting crawl of {len(config.start_urls)} URLs with budget {config.max_requests_per_crawl}")
    if config.headers:
        logger.info(f"Using custom headers: {', '.join(config.headers.keys())}")

    async def run():
        engine = ClassificationEngine(registry)
        with JsonLinesDataset(config.output) as dataset:
            pipeline = PagePipeline(engine, dataset, include_resource_hints=config.detect_cdns_and_libraries)
            crawler = Crawler(config, pipeline)
            stats = await crawler.run()
            logger.info(f"Saved {dataset.count} records ({stats.failed} failed requests)")

    asyncio.run(run())
    return 0


if __name__ == "__main__":
    sys.exit(main())
