import time
from contextlib import contextmanager
from typing import Iterator, Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme
from rich.traceback import install as install_rich_traceback

OUTPUT_MODES = ("standard", "verbose", "silent")

THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "cost": "magenta",
    "hint": "dim italic",
})


class ConsoleManager:
    """Shared rich console. Every user-facing line goes through here so 'silent' mode is honoured."""

    _shared: Optional["ConsoleManager"] = None

    def __new__(cls):
        if cls._shared is None:
            manager = super().__new__(cls)
            # Diagnostics go to stderr so transcripts and notes can be piped from stdout
            manager.console = Console(theme=THEME, stderr=True)
            manager.stdout = Console(theme=THEME)
            manager.output_mode = "standard"
            install_rich_traceback(console=manager.console, show_locals=False)
            cls._shared = manager
        return cls._shared

    def configure(self, output_mode: str = "standard", debug: bool = False):
        if debug:
            self.output_mode = "verbose"
        else:
            mode = (output_mode or "standard").lower()
            self.output_mode = mode if mode in OUTPUT_MODES else "standard"

    @property
    def quiet(self) -> bool:
        return self.output_mode == "silent"

    def print(self, *args, **kwargs):
        if not self.quiet:
            self.console.print(*args, **kwargs)

    def text(self, body: str):
        """Write generated content to stdout verbatim, even in silent mode."""
        self.stdout.print(body, markup=False, highlight=False, soft_wrap=True)

    def success(self, message: str):
        self.print(f"✅ {message}", style="success")

    def warning(self, message: str):
        self.print(f"⚠️ {message}", style="warning")

    def cost(self, amount_usd: float, rate_found: bool = True, label: str = "Estimated cost"):
        if not rate_found:
            self.warning("No rate table entry for this model; cost reported as $0")
        self.print(f"{label}: ${amount_usd:.4f}", style="cost")

    def error_panel(self, message: str, title: str = "Error", hint: Optional[str] = None):
        body = Text(message)
        if hint:
            body.append("\n\n")
            body.append(hint, style="hint")
        self.print(Panel(body, title=title, border_style="red", expand=False))

    @contextmanager
    def status(self, message: str) -> Iterator[None]:
        """Spinner in standard mode, start/end lines with timing in verbose mode, nothing when silent."""
        if self.output_mode == "standard":
            with self.console.status(f"[info]{message}", spinner="dots"):
                yield
            return

        started = time.monotonic()
        if not self.quiet:
            self.console.log(message)
        yield
        if not self.quiet:
            self.console.log(f"Done in {time.monotonic() - started:.1f}s")


console = ConsoleManager()
