"""Main entry point for the user renderer."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from blog_ui.src.config import get_config
from blog_ui.src.renderer import EMPTY_PAGE, RendererError, UserRenderer
from shared.logging import configure_logging

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser."""
    config = get_config()

    parser = argparse.ArgumentParser(
        prog="blog-ui",
        description="Render the blog user list as HTML"
    )
    parser.add_argument(
        "--url",
        default=config.users_url,
        help=f"Users endpoint (default: {config.users_url})"
    )
    parser.add_argument(
        "--page",
        type=Path,
        help="HTML page to render into (default: an empty page)"
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Write the rendered page here instead of stdout"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=config.request_timeout,
        help="HTTP timeout in seconds"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    config = get_config()
    args = build_parser().parse_args(argv)

    configure_logging(
        log_level=config.log_level,
        json_logs=config.json_logs,
        service_name="blog-ui",
        stream=sys.stderr
    )

    document = args.page.read_text(encoding="utf-8") if args.page else EMPTY_PAGE
    renderer = UserRenderer(args.url, timeout=args.timeout)

    try:
        rendered = renderer.show_users(document)
    except RendererError as e:
        logger.error("render_failed", url=args.url, error=str(e))
        return 1

    if args.output:
        args.output.write_text(rendered, encoding="utf-8")
        logger.info("page_written", path=str(args.output))
    else:
        sys.stdout.write(rendered)

    return 0


if __name__ == "__main__":
    sys.exit(main())
