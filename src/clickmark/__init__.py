"""clickmark - click-to-edit Markdown document synchronization engine."""

__version__ = "0.1.0"
