"""Watch mode for clickmark - re-render a Markdown file's preview on change."""

import json
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .adapters.md_to_html import render_page

logger = logging.getLogger(__name__)


class PreviewHandler(FileSystemEventHandler):
    """File system event handler with debouncing for a single file."""

    def __init__(self, path: Path, on_change: Any, debounce_ms: int = 150):
        super().__init__()
        self.path = path.resolve()
        self.on_change = on_change
        self.debounce_ms = debounce_ms

        self.dirty = False
        self.last_event_time = 0.0

    def _matches(self, raw_path: Any) -> bool:
        if not raw_path:
            return False
        return Path(str(raw_path)).resolve() == self.path

    def _touch(self) -> None:
        self.dirty = True
        self.last_event_time = time.time()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self._touch()

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self._touch()

    def on_moved(self, event: FileSystemEvent) -> None:
        # editors that save via rename land here
        if not event.is_directory and self._matches(getattr(event, "dest_path", None)):
            self._touch()

    def check_and_flush(self) -> bool:
        """Flush if the debounce period has elapsed since the last event."""
        if not self.dirty:
            return False
        elapsed = (time.time() - self.last_event_time) * 1000
        if elapsed >= self.debounce_ms:
            return self.flush()
        return False

    def flush(self) -> bool:
        if not self.dirty:
            return False
        self.dirty = False
        if self.on_change:
            self.on_change()
        return True


def render_file(source: Path, out: Path, runtime: Any) -> dict[str, Any]:
    """Load ``source`` into a fresh session and write its preview page."""
    session = runtime.new_session(source.read_text(encoding="utf-8"))
    try:
        body = session.get_rendered_output()
        page = render_page(body, runtime.highlighter.stylesheet(), title=source.stem)
        out.write_text(page, encoding="utf-8")
        return {
            "blocks": len(session.document),
            "words": session.word_count(),
        }
    finally:
        session.destroy()


def watch_file(
    source: Path,
    out: Path,
    runtime: Any,
    debounce_ms: int = 150,
    quiet: bool = False,
    json_output: bool = False,
) -> int:
    """
    Watch a Markdown file and rewrite its HTML preview whenever it changes.

    Args:
        source: Markdown (or HTML) file to watch
        out: Where the preview page is written
        runtime: Runtime instance
        debounce_ms: Debounce window in milliseconds
        quiet: Suppress output
        json_output: Output JSON events instead of human-readable

    Returns:
        Exit code
    """
    if not source.exists():
        print(f"Error: File not found: {source}", file=sys.stderr)
        return 1

    running = True

    def handle_change() -> None:
        start_time = time.time()
        try:
            counts = render_file(source, out, runtime)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("could not render %s: %s", source, e)
            if json_output:
                print(json.dumps({"type": "error", "message": str(e)}), flush=True)
            else:
                print(f"Error: {e}", file=sys.stderr, flush=True)
            return

        duration_ms = int((time.time() - start_time) * 1000)
        if json_output:
            event = {"type": "render", "out": str(out), "duration_ms": duration_ms, **counts}
            print(json.dumps(event), flush=True)
        elif not quiet:
            print(
                f"Rendered {out} ({counts['blocks']} blocks, {counts['words']} words, {duration_ms}ms)",
                flush=True,
            )

    def signal_handler(signum: int, frame: Any) -> None:
        nonlocal running
        running = False
        if not quiet and not json_output:
            print("\nShutting down...", flush=True)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    handle_change()

    handler = PreviewHandler(source, handle_change, debounce_ms)
    observer = Observer()
    observer.schedule(handler, str(source.resolve().parent), recursive=False)

    if not quiet and not json_output:
        print(f"Watching {source} (debounce: {debounce_ms}ms)", flush=True)
        print("Press Ctrl+C to stop", flush=True)

    observer.start()

    try:
        while running:
            time.sleep(0.1)
            handler.check_and_flush()
    finally:
        handler.flush()
        observer.stop()
        observer.join()

    if not quiet and not json_output:
        print("Watch stopped", flush=True)

    return 0
