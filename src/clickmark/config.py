"""Configuration loader for clickmark.toml."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

CONFIG_NAME = "clickmark.toml"


@dataclass
class TimingConfig:
    """Debounce windows in milliseconds."""
    sync_ms: int = 80
    autosave_ms: int = 2000


@dataclass
class HistoryConfig:
    """Undo history configuration."""
    limit: int = 150


@dataclass
class RenderConfig:
    """HTML rendering configuration."""
    pygments_style: str = "monokai"
    extensions: list[str] = field(
        default_factory=lambda: ["tables", "nl2br", "sane_lists"]
    )


@dataclass
class EditorConfig:
    """Editor surface configuration."""
    placeholder: str = "Start writing… type / for commands"


@dataclass
class ClickmarkConfig:
    """Complete clickmark configuration."""
    timing: TimingConfig
    history: HistoryConfig
    render: RenderConfig
    editor: EditorConfig


def load_config(config_path: Path | None = None) -> ClickmarkConfig:
    """
    Load configuration from clickmark.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/clickmark.toml

    Args:
        config_path: Explicit path to config file

    Returns:
        ClickmarkConfig with resolved settings
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / CONFIG_NAME)

    for path in search_paths:
        if path.exists():
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
            break

    timing_data = toml_data.get("timing", {})
    timing = TimingConfig(
        sync_ms=int(timing_data.get("sync_ms", 80)),
        autosave_ms=int(timing_data.get("autosave_ms", 2000)),
    )

    history_data = toml_data.get("history", {})
    history = HistoryConfig(limit=int(history_data.get("limit", 150)))

    render_data = toml_data.get("render", {})
    render = RenderConfig(pygments_style=render_data.get("pygments_style", "monokai"))
    if "extensions" in render_data:
        render.extensions = list(render_data["extensions"])

    editor_data = toml_data.get("editor", {})
    editor = EditorConfig()
    if "placeholder" in editor_data:
        editor.placeholder = editor_data["placeholder"]

    return ClickmarkConfig(
        timing=timing,
        history=history,
        render=render,
        editor=editor,
    )
