from pathlib import Path
from rich.console import Console
from fbc.domain.events import DiscoveryFinished, TrackFinished, CoverArtWarning, ProcessingFinished
from fbc.domain.models import SourceTrack, ConversionResult, ConversionStatus, BatchSummary
from fbc.ui.console import ConsoleReporter

def _reporter(event_bus):
    console = Console(width=200, record=True, color_system=None)
    ConsoleReporter(event_bus, console=console, input_root=Path("/music"))
    return console

def test_status_lines_per_track(event_bus):
    console = _reporter(event_bus)
    track = SourceTrack(path=Path("/music/Artist/Album/01 - Song.flac"))

    event_bus.publish(TrackFinished(result=ConversionResult(
        track=track, status=ConversionStatus.CONVERTED, output_path=Path("/out/Foo/2020 - Bar/01-01 - Song.opus"),
    )))
    event_bus.publish(TrackFinished(result=ConversionResult(track=track, status=ConversionStatus.SKIPPED)))
    event_bus.publish(TrackFinished(result=ConversionResult(
        track=track, status=ConversionStatus.FAILED, error_message="ffmpeg exited with code 1",
    )))

    lines = console.export_text().splitlines()
    assert lines[0].startswith("convert")
    assert "Artist/Album/01 - Song.flac" in lines[0]
    assert "01-01 - Song.opus" in lines[0]
    assert lines[1].startswith("skip")
    assert lines[2].startswith("fail")
    assert "ffmpeg exited with code 1" in lines[2]

def test_markup_in_names_is_escaped(event_bus):
    console = _reporter(event_bus)
    track = SourceTrack(path=Path("/music/[bold]weird[/bold].flac"))

    event_bus.publish(TrackFinished(result=ConversionResult(track=track, status=ConversionStatus.SKIPPED)))

    assert "[bold]weird[/bold].flac" in console.export_text()

def test_discovery_warning_and_banner(event_bus):
    console = _reporter(event_bus)

    event_bus.publish(DiscoveryFinished(files_found=3, workers=2))
    event_bus.publish(CoverArtWarning(album_dir=Path("/out/A/B"), message="Cover copy failed"))
    event_bus.publish(ProcessingFinished(
        summary=BatchSummary(total=3, converted=1, skipped=1, failed=1), elapsed_seconds=2.5,
    ))

    text = console.export_text()
    assert "Found 3 file(s), converting with 2 worker(s)" in text
    assert "warning Cover copy failed" in text
    assert "Done in 2.5s: 1 converted, 1 skipped, 1 failed (of 3)" in text
