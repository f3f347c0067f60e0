from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from fbc.infrastructure.event_bus import EventBus
from fbc.domain.models import ConversionStatus
from fbc.domain.events import (
    DiscoveryFinished, TrackFinished, CoverArtWarning, ProcessingFinished,
)

_STATUS_STYLE = {
    ConversionStatus.CONVERTED: ("convert", "green"),
    ConversionStatus.SKIPPED: ("skip", "dim"),
    ConversionStatus.FAILED: ("fail", "bold red"),
}


class ConsoleReporter:
    """Subscribes to EventBus and prints one status line per track."""

    def __init__(self, bus: EventBus, console: Optional[Console] = None, input_root: Optional[Path] = None):
        self.bus = bus
        self.console = console or Console(highlight=False)
        self.input_root = input_root
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(DiscoveryFinished, self.on_discovery_finished)
        self.bus.subscribe(TrackFinished, self.on_track_finished)
        self.bus.subscribe(CoverArtWarning, self.on_cover_warning)
        self.bus.subscribe(ProcessingFinished, self.on_processing_finished)

    def _display_path(self, path: Path) -> str:
        if self.input_root is not None:
            try:
                return str(path.relative_to(self.input_root))
            except ValueError:
                pass
        return str(path)

    def on_discovery_finished(self, event: DiscoveryFinished):
        self.console.print(f"Found {event.files_found} file(s), converting with {event.workers} worker(s)")

    def on_track_finished(self, event: TrackFinished):
        result = event.result
        label, style = _STATUS_STYLE[result.status]
        line = f"[{style}]{label:<7}[/{style}] {escape(self._display_path(result.track.path))}"
        if result.status == ConversionStatus.FAILED and result.error_message:
            line += f" [red]({escape(result.error_message)})[/red]"
        elif result.output_path is not None and result.status == ConversionStatus.CONVERTED:
            line += f" -> {escape(str(result.output_path))}"
        self.console.print(line)

    def on_cover_warning(self, event: CoverArtWarning):
        self.console.print(f"[yellow]warning[/yellow] {escape(event.message)}")

    def on_processing_finished(self, event: ProcessingFinished):
        s = event.summary
        elapsed = f" in {event.elapsed_seconds:.1f}s" if event.elapsed_seconds else ""
        style = "red" if s.failed else "green"
        self.console.print(Panel(
            f"Done{elapsed}: {s.converted} converted, {s.skipped} skipped, {s.failed} failed (of {s.total})",
            title="FBC", border_style=style, expand=False,
        ))
