"""Command line entry point for the router.

Usage::

    python -m langroute --config config/langroute.yaml match /fr/accueil
    python -m langroute url NEWS --lang FR --param page=2 --query sort=date
    python -m langroute export --output routes.json
    python -m langroute routes
"""

import argparse
import asyncio
import json
import sys
from typing import Any

from langroute.core.cache import create_store
from langroute.core.config import LangrouteConfig, load_config
from langroute.core.exceptions import LoaderException, ParserException
from langroute.core.loader import load_cached, load_routes
from langroute.core.logging import RouterLogger, initialize_logging
from langroute.core.request import RequestContext
from langroute.core.router import Router
from langroute.core.table import RouteTable


def _pairs(values: list[str] | None) -> dict[str, str]:
    """Parse repeated ``key=value`` arguments."""
    pairs: dict[str, str] = {}
    for value in values or []:
        key, separator, item = value.partition("=")
        if not separator or not key:
            raise argparse.ArgumentTypeError(f"Expected key=value, got {value!r}")
        pairs[key] = item
    return pairs


async def _load_cached_table(config: LangrouteConfig) -> RouteTable:
    store = create_store(config.cache.store_url)
    await store.connect()
    try:
        return await load_cached(store, config)
    finally:
        await store.disconnect()


def build_table(config: LangrouteConfig, router_logger: RouterLogger) -> RouteTable:
    """Compile the configured sources, through the table cache when enabled."""
    if config.cache.enabled:
        table = asyncio.run(_load_cached_table(config))
        source = "cache"
    else:
        table = load_routes(config)
        source = ",".join(config.router.sources)

    router_logger.log_table_built(len(table), source)
    return table


def _print(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def run_match(router: Router, args: argparse.Namespace) -> int:
    router.method = args.method
    route = router.find(args.path)
    if not route.id:
        _print({"found": False, "path": args.path, "method": router.method})
        return 1

    _print(
        {
            "found": True,
            "id": route.id,
            "lang": route.lang,
            "controller": route.controller,
            "params": route.rewrite_params,
            "query": route.query_params,
        }
    )
    return 0


def run_url(router: Router, args: argparse.Namespace) -> int:
    route = router.url(
        args.route_id,
        args.lang,
        rewrite=_pairs(args.param),
        get=_pairs(args.query),
        full=args.full,
    )
    url = route.get_url()
    if route.has_errors():
        _print({"url": "", "errors": [str(error) for error in route.errors]})
        return 1

    _print({"url": url})
    return 0


def run_export(router: Router, args: argparse.Namespace) -> int:
    exported = json.dumps(router.export(), indent=2, ensure_ascii=False)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(exported)
    else:
        print(exported)
    return 0


def run_routes(router: Router, args: argparse.Namespace) -> int:
    rows: list[tuple[str, str, str, str]] = []
    for entry in router.table:
        methods = " ".join(entry.methods) or "*"
        for lang in entry.langs:
            rows.append((entry.id, lang, methods, "/" + entry.routes[lang].original))

    if not rows:
        print("No routes registered.")
        return 0

    header = ("ID", "LANG", "METHODS", "PATH")
    widths = [max(len(row[column]) for row in [header, *rows]) for column in range(3)]
    fmt = f"{{:<{widths[0]}}}  {{:<{widths[1]}}}  {{:<{widths[2]}}}  {{}}"
    print(fmt.format(*header))
    for row in rows:
        print(fmt.format(*row))
    return 0


COMMANDS = {
    "match": run_match,
    "url": run_url,
    "export": run_export,
    "routes": run_routes,
}


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(prog="langroute", description="Multilingual URL router")
    parser.add_argument("--config", default=None, help="Configuration file path")
    subparsers = parser.add_subparsers(dest="command")

    match_parser = subparsers.add_parser("match", help="Find the route matching a path")
    match_parser.add_argument("path", help="Request path, may carry a query string")
    match_parser.add_argument("--method", default="GET", help="Request method")

    url_parser = subparsers.add_parser("url", help="Render the URL of a route")
    url_parser.add_argument("route_id", help="Route identifier")
    url_parser.add_argument("--lang", default="", help="Language (default language if omitted)")
    url_parser.add_argument("--param", action="append", help="Path parameter as key=value")
    url_parser.add_argument("--query", action="append", help="Query parameter as key=value")
    url_parser.add_argument("--full", action="store_true", help="Render scheme and host")

    export_parser = subparsers.add_parser("export", help="Export the compiled route table as JSON")
    export_parser.add_argument("--output", default=None, help="Output file (stdout if omitted)")

    subparsers.add_parser("routes", help="List routes")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = load_config(args.config)
        if config.logging.output == "stdout":
            # Keep stdout for command output
            config.logging.output = "stderr"
        router_logger = initialize_logging(config.logging)
        router = Router(
            build_table(config, router_logger),
            RequestContext(),
            default_lang=config.router.default_lang,
            base_url=config.router.base_url,
            structured_logger=router_logger,
        )
        return COMMANDS[args.command](router, args)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except (ValueError, LoaderException, ParserException) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 1


if __name__ == "__main__":
    sys.exit(main())
