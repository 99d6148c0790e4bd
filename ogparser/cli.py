"""Command-line entry point for the Open Graph parser."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence

import requests

from .config import DEFAULT_TIMEOUT, ParserConfig
from .images import ThumbnailGenerator
from .links import extract_first_href, make_clickable
from .metadata import MetadataFetcher
from .models import PostIdentity
from .parser import ImmediateScheduler, MemoryPostStore, OpenGraphParser, StoredPost
from .storage import UploadStorage

logger = logging.getLogger("ogparser.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("fetch", *argv)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Seconds to wait for each download",
    )
    parser.add_argument(
        "--user-agent",
        default=None,
        help="Override the User-Agent header sent with requests",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_storage_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--slug", required=True, help="Post slug used to name the thumbnail")
    parser.add_argument(
        "--upload-dir",
        default="uploads",
        type=Path,
        help="Directory where thumbnails are written",
    )
    parser.add_argument(
        "--upload-url",
        default="/uploads",
        help="Public URL prefix that serves the upload directory",
    )


def _add_content_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "content",
        nargs="?",
        type=Path,
        default=None,
        help="File holding the post HTML (reads STDIN when omitted)",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract Open Graph / Twitter Card link previews from posts and pages.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch_parser = subparsers.add_parser(
        "fetch", help="Print the normalized meta tags of a web page as JSON"
    )
    fetch_parser.add_argument("url", help="Page URL")
    _add_common_arguments(fetch_parser)

    link_parser = subparsers.add_parser(
        "link", help="Print the first valid link found in post HTML"
    )
    _add_content_argument(link_parser)
    link_parser.add_argument(
        "--no-linkify",
        action="store_true",
        help="Do not turn bare URLs into links before searching",
    )
    link_parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    thumb_parser = subparsers.add_parser(
        "thumbnail", help="Create a thumbnail from a preview image URL"
    )
    thumb_parser.add_argument("url", help="Image URL")
    _add_storage_arguments(thumb_parser)
    _add_common_arguments(thumb_parser)

    parse_parser = subparsers.add_parser(
        "parse", help="Run the whole pipeline for one post and print the stored metadata"
    )
    _add_content_argument(parse_parser)
    _add_storage_arguments(parse_parser)
    parse_parser.add_argument(
        "--no-thumbnail",
        action="store_true",
        help="Skip downloading the preview image",
    )
    _add_common_arguments(parse_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _build_config(args: argparse.Namespace) -> ParserConfig:
    overrides = {"timeout": args.timeout}
    if args.user_agent:
        overrides["user_agent"] = args.user_agent
    return ParserConfig.from_env(**overrides)


def _read_content(path: Optional[Path]) -> str:
    if path is None:
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


def _emit(payload) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, ensure_ascii=False) + "\n")
    sys.stdout.flush()


def _run_fetch(args: argparse.Namespace) -> int:
    config = _build_config(args)
    tags = MetadataFetcher(config).fetch(args.url)
    _emit(tags)
    return 0 if tags else 1


def _run_link(args: argparse.Namespace) -> int:
    content = _read_content(args.content)
    if not args.no_linkify:
        content = make_clickable(content)
    url = extract_first_href(content)
    if not url:
        logger.info("No valid link found")
        return 1
    sys.stdout.write(url + "\n")
    return 0


def _run_thumbnail(args: argparse.Namespace) -> int:
    config = _build_config(args)
    storage = UploadStorage(args.upload_dir.resolve(), args.upload_url)
    url = ThumbnailGenerator(config, storage).generate(args.url, args.slug)
    if not url:
        return 1
    sys.stdout.write(url + "\n")
    return 0


def _run_parse(args: argparse.Namespace) -> int:
    config = _build_config(args)
    session = requests.Session()
    post = StoredPost(
        identity=PostIdentity(id=1, slug=args.slug),
        content=_read_content(args.content),
    )
    store = MemoryPostStore([post])
    thumbnails = None
    if not args.no_thumbnail:
        storage = UploadStorage(args.upload_dir.resolve(), args.upload_url)
        thumbnails = ThumbnailGenerator(config, storage, session=session)

    parser = OpenGraphParser(
        store,
        config=config,
        session=session,
        thumbnails=thumbnails,
        scheduler=ImmediateScheduler(),
    )
    parser.parse_post(post.identity.id)
    _emit(post.meta)
    return 0 if post.meta else 1


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    if args.command == "fetch":
        return _run_fetch(args)
    if args.command == "link":
        return _run_link(args)
    if args.command == "thumbnail":
        return _run_thumbnail(args)
    return _run_parse(args)


if __name__ == "__main__":
    sys.exit(main())
