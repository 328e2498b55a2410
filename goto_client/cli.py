#!/usr/bin/env python3
"""
Command-line interface for the Goto products API.
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import after loading env vars to ensure proper configuration
from .client import GotoClient, check_health
from .domain.interfaces.transport import BinaryPart
from .domain.models.chat import ErrorEvent, ResponseChunk
from .domain.models.errors import GotoClientError
from .infrastructure.config.settings import reload_settings
from .infrastructure.http.transport import RequestsTransport
from .utils import product_summary, setup_logging, to_jsonable


def _guess_media_type(path: str) -> str:
    lowered = path.lower()
    if lowered.endswith(".png"):
        return "image/png"
    if lowered.endswith(".webp"):
        return "image/webp"
    if lowered.endswith((".jpg", ".jpeg")):
        return "image/jpeg"
    return "application/octet-stream"


def _print_json(data) -> None:
    print(json.dumps(to_jsonable(data), indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="goto-client",
        description="Query the Goto products catalog, discovery and chat API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s health
  %(prog)s products --page 2 --limit 50 --sort-by price --sort-order desc
  %(prog)s search "modern glass doors" --top-n 5 --filter category=exterior
  %(prog)s stream "Which doors suit a beach house?" --session-id demo-1
        """
    )
    parser.add_argument('--base-url', help='API base URL (or set GOTO_BASE_URL)')
    parser.add_argument('--api-key', help='API key (or set GOTO_API_KEY)')
    parser.add_argument('--tenant-id', help='Tenant id (or set GOTO_TENANT_ID)')
    parser.add_argument('--json', action='store_true', help='Print raw JSON results')
    parser.add_argument('--log-level',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Set logging level (default: LOG_LEVEL or INFO)')
    parser.add_argument('--version', action='version', version='%(prog)s 1.0.0')

    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('health', help='Check API health (no credentials needed)')

    products = sub.add_parser('products', help='List catalog products')
    products.add_argument('--page', type=int, default=1)
    products.add_argument('--limit', type=int, default=20)
    products.add_argument('--sort-by')
    products.add_argument('--sort-order', choices=['asc', 'desc'])
    products.add_argument('--search')

    product = sub.add_parser('product', help='Show one product by UUID')
    product.add_argument('product_id')

    search = sub.add_parser('search', help='Semantic product discovery')
    search.add_argument('query')
    search.add_argument('--top-n', type=int, default=10)
    search.add_argument('--filter', action='append', default=[], metavar='KEY=VALUE',
                        help='Equality filter; repeatable. Values are parsed as JSON when possible.')
    search.add_argument('--image', help='Path to an image file to search with')
    search.add_argument('--no-confidence', action='store_true', help='Skip the confidence message')

    chat = sub.add_parser('chat', help='Ask the products assistant')
    chat.add_argument('message')

    stream = sub.add_parser('stream', help='Ask the products assistant and stream the reply')
    stream.add_argument('message')
    stream.add_argument('--session-id', required=True)
    stream.add_argument('--user-id')
    stream.add_argument('--include-products', action='store_true')
    stream.add_argument('--product-limit', type=int)
    return parser


def _parse_filters(pairs: List[str]) -> Optional[dict]:
    if not pairs:
        return None
    result = {}
    for pair in pairs:
        key, sep, raw = pair.partition('=')
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Filter must look like KEY=VALUE, got {pair!r}")
        try:
            result[key] = json.loads(raw)
        except ValueError:
            result[key] = raw
    return result


def run(args: argparse.Namespace, client: GotoClient) -> int:
    """Execute one parsed command; returns the process exit code."""
    if args.command == 'products':
        page = client.catalog.list_products(
            page=args.page,
            limit=args.limit,
            sort_by=args.sort_by,
            sort_order=args.sort_order,
            search=args.search,
        )
        if args.json:
            _print_json({"items": [asdict(p) for p in page.items], "pagination": asdict(page.pagination)})
        else:
            for item in page.items:
                print(product_summary(asdict(item)))
            p = page.pagination
            print(f"-- page {p.page}/{p.pages} ({p.total} total){' more available' if p.has_more else ''}")
        return 0

    if args.command == 'product':
        item = client.catalog.get_product(args.product_id)
        if args.json:
            _print_json(asdict(item))
        else:
            print(product_summary(asdict(item)))
            if item.description:
                print(item.description)
        return 0

    if args.command == 'search':
        image = None
        if args.image:
            with open(args.image, 'rb') as fh:
                image = BinaryPart(
                    content=fh.read(),
                    media_type=_guess_media_type(args.image),
                    filename=os.path.basename(args.image),
                )
        result = client.discovery.search(
            args.query,
            filter=_parse_filters(args.filter),
            image=image,
            top_n=args.top_n,
            include_confidence_message=not args.no_confidence,
        )
        if args.json:
            _print_json({"items": [asdict(i) for i in result.items], "confidenceMessage": result.confidence_message})
        else:
            if result.confidence_message:
                print(result.confidence_message)
            for item in result.items:
                print(product_summary(asdict(item)))
        return 0

    if args.command == 'chat':
        print(client.chat.send(args.message))
        return 0

    if args.command == 'stream':
        with client.chat.stream(
            args.message,
            session_id=args.session_id,
            user_id=args.user_id,
            include_products=True if args.include_products else None,
            product_limit=args.product_limit,
        ) as events:
            for event in events:
                if isinstance(event, ResponseChunk):
                    sys.stdout.write(event.data)
                    sys.stdout.flush()
                elif isinstance(event, ErrorEvent):
                    print(f"\n❌ Stream error: {event.message}", file=sys.stderr)
                    return 1
        print()
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the Goto CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = reload_settings()
    setup_logging(args.log_level or settings.log_level)
    logger = logging.getLogger(__name__)

    if args.base_url:
        settings.api.base_url = args.base_url.rstrip('/')
    if args.api_key:
        settings.api.api_key = args.api_key
    if args.tenant_id:
        settings.api.tenant_id = args.tenant_id

    try:
        if args.command == 'health':
            transport = RequestsTransport(
                settings.api.base_url,
                connect_timeout=settings.timeouts.connect_timeout_s,
                default_timeout=settings.timeouts.request_timeout_s,
            )
            try:
                _print_json(check_health(transport))
            finally:
                transport.close()
            sys.exit(0)
        with GotoClient.from_settings(settings) as client:
            sys.exit(run(args, client))
    except KeyboardInterrupt:
        print("\n👋 Interrupted")
        sys.exit(130)
    except (GotoClientError, argparse.ArgumentTypeError, OSError) as e:
        logger.debug(f"Command failed: {e!r}")
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
