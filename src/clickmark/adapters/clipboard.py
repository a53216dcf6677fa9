class MemoryClipboard:
    """Process-local clipboard; the last written text wins."""

    def __init__(self) -> None:
        self.text = ""

    def write_text(self, text: str) -> None:
        self.text = text
