"""CLI for clickmark - click-to-edit Markdown synchronization engine."""

import argparse
import json
import logging
import platform
import sys
from collections import Counter
from pathlib import Path
from typing import Any

from . import __version__
from .adapters.md_to_html import render_page
from .core.canonical import canonicalize
from .core.codeblock import CodeBlock
from .core.model import describe_block
from .core.structure import parse
from .runtime import build_runtime


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _write_output(text: str, out: Path | None) -> None:
    if out is None:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")
    else:
        out.write_text(text, encoding="utf-8")


def cmd_render(args: argparse.Namespace, rt: Any) -> int:
    """Render Markdown (or HTML) to presentation HTML."""
    session = rt.new_session(_read_source(args.file))
    try:
        html = session.get_rendered_output()
    finally:
        session.destroy()
    if args.page:
        title = Path(args.file).stem if args.file != "-" else ""
        html = render_page(html, rt.highlighter.stylesheet(), title=title)
    _write_output(html, args.out)
    return 0


def cmd_convert(args: argparse.Namespace, rt: Any) -> int:
    """Print the canonical Markdown of a Markdown or HTML file."""
    session = rt.new_session(_read_source(args.file))
    try:
        _write_output(session.get_canonical_text(), args.out)
    finally:
        session.destroy()
    return 0


def cmd_blocks(args: argparse.Namespace, rt: Any) -> int:
    """List the blocks a file parses into."""
    session = rt.new_session(_read_source(args.file))
    try:
        blocks = [describe_block(b) for b in session.document]
    finally:
        session.destroy()

    if args.json:
        for block in blocks:
            block.pop("html", None)
        print(json.dumps(blocks, indent=2, ensure_ascii=False))
        return 0

    for i, block in enumerate(blocks):
        if block["type"] == "code":
            lines = block["code"].count("\n") + 1
            print(f"{i:>4}  code       {block['language'] or '-'} ({lines} lines)")
        else:
            print(f"{i:>4}  {block['kind']:<10} {block['raw']}")
    return 0


def cmd_check(args: argparse.Namespace, rt: Any) -> int:
    """Verify that a file survives parse -> canonicalize unchanged."""
    text = _read_source(args.file)
    session = rt.new_session(text)
    try:
        canonical = session.get_canonical_text()
        kinds = Counter(
            "code" if isinstance(b, CodeBlock) else b.kind for b in session.document
        )
    finally:
        session.destroy()

    stable = canonicalize(parse(canonical)) == canonical
    lossless = canonical == text.replace("\r\n", "\n").replace("\r", "\n")

    if args.json:
        print(json.dumps({
            "stable": stable,
            "lossless": lossless,
            "kinds": dict(sorted(kinds.items())),
        }))
    elif not args.quiet:
        print(f"Round-trip stable: {'yes' if stable else 'NO'}")
        print(f"Lossless: {'yes' if lossless else 'no (fences normalized)'}")
        for kind, count in sorted(kinds.items()):
            print(f"  {kind}: {count}")

    return 0 if stable else 1


def cmd_watch(args: argparse.Namespace, rt: Any) -> int:
    """Watch a file and keep its HTML preview up to date."""
    from .watch import watch_file

    source = Path(args.file)
    out = args.out or source.with_suffix(".html")
    return watch_file(
        source=source,
        out=out,
        runtime=rt,
        debounce_ms=args.debounce_ms,
        quiet=args.quiet,
        json_output=args.json,
    )


def cmd_serve(args: argparse.Namespace, rt: Any) -> int:
    """Start local JSON API server."""
    import uvicorn

    from .api.app import create_app, generate_token

    token_arg = getattr(args, "token", "auto")
    token = None

    if token_arg == "auto":
        token = generate_token()
        print(f"Generated bearer token: {token}")
        print(f"Use in requests: Authorization: Bearer {token}")
    elif token_arg == "none":
        print("Warning: Running without authentication. Only use in trusted environments.")
        token = None
    else:
        token = token_arg

    session = rt.new_session(_read_source(args.file) if args.file else None)
    app = create_app(rt, token=token, enable_cors=args.cors, session=session)

    if not args.quiet:
        print(f"Serving on http://{args.host}:{args.port}")

    uvicorn.run(app, host=args.host, port=args.port, log_level="warning")
    return 0


def _version_text() -> str:
    return (
        f"clickmark {__version__}\n"
        f"python {platform.python_version()}\n"
        f"platform {platform.platform()}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clickmark",
        description="clickmark CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=_version_text()
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/clickmark.toml)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Debug logging on stderr"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # render command
    parser_render = subparsers.add_parser("render", help="Render Markdown to HTML")
    parser_render.add_argument("file", help="Markdown or HTML file ('-' for stdin)")
    parser_render.add_argument("-o", "--out", type=Path, default=None, help="Output file")
    parser_render.add_argument(
        "--page", action="store_true", help="Wrap in a standalone HTML page"
    )

    # convert command
    parser_convert = subparsers.add_parser(
        "convert", help="Print canonical Markdown (converts HTML input)"
    )
    parser_convert.add_argument("file", help="Markdown or HTML file ('-' for stdin)")
    parser_convert.add_argument("-o", "--out", type=Path, default=None, help="Output file")

    # blocks command
    parser_blocks = subparsers.add_parser("blocks", help="List parsed blocks")
    parser_blocks.add_argument("file", help="Markdown or HTML file ('-' for stdin)")

    # check command
    parser_check = subparsers.add_parser("check", help="Verify round-trip stability")
    parser_check.add_argument("file", help="Markdown or HTML file ('-' for stdin)")

    # watch command
    parser_watch = subparsers.add_parser("watch", help="Re-render a file on change")
    parser_watch.add_argument("file", help="Markdown file to watch")
    parser_watch.add_argument(
        "-o", "--out", type=Path, default=None,
        help="Preview file (default: <file>.html)"
    )
    parser_watch.add_argument(
        "--debounce-ms", type=int, default=150,
        help="Debounce window in milliseconds (default: 150)"
    )

    # serve command
    parser_serve = subparsers.add_parser("serve", help="Start local JSON API server")
    parser_serve.add_argument("file", nargs="?", default=None, help="Initial content")
    parser_serve.add_argument(
        "--host", default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser_serve.add_argument(
        "--port", type=int, default=8765,
        help="Port to bind to (default: 8765)"
    )
    parser_serve.add_argument(
        "--token", default="auto",
        help="Bearer token (auto|<string>|none, default: auto)"
    )
    parser_serve.add_argument(
        "--cors", action="store_true",
        help="Enable CORS (default: false)"
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    rt = build_runtime(config_path=args.config)

    handlers = {
        "render": cmd_render,
        "convert": cmd_convert,
        "blocks": cmd_blocks,
        "check": cmd_check,
        "watch": cmd_watch,
        "serve": cmd_serve,
    }

    handler = handlers.get(args.cmd)
    if handler:
        try:
            exit_code = handler(args, rt)
            sys.exit(exit_code)
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
