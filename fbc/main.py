import shutil
import typer
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from fbc.config.loader import load_config
from fbc.infrastructure.logging import setup_logging
from fbc.infrastructure.event_bus import EventBus
from fbc.infrastructure.file_scanner import FileScanner
from fbc.infrastructure.ffprobe import FFprobeAdapter
from fbc.infrastructure.ffmpeg import FFmpegAdapter
from fbc.infrastructure.image import ImageResampler
from fbc.infrastructure.housekeeping import HousekeepingService
from fbc.pipeline.metadata import MetadataResolver
from fbc.pipeline.cover_art import CoverArtResolver
from fbc.pipeline.worker import FileWorker
from fbc.pipeline.orchestrator import Orchestrator
from fbc.ui.console import ConsoleReporter

REQUIRED_TOOLS = ("ffmpeg", "ffprobe")

app = typer.Typer(help="FBC (FLAC Batch Conversion) - FLAC to Opus by artist/album")


def _fail(message: str) -> None:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.command()
def convert(
    input_dir: Path = typer.Argument(..., help="Directory tree with FLAC files"),
    output_dir: Path = typer.Argument(..., help="Output root (created if missing)"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
    threads: Optional[int] = typer.Option(None, "--threads", "-t", help="Override worker count (default: CPU count)"),
    bitrate: Optional[int] = typer.Option(None, "--bitrate", "-b", help="Override Opus target bitrate in kbit/s"),
    cover_width: Optional[int] = typer.Option(None, "--cover-width", help="Override cover art width in pixels"),
    strict: Optional[bool] = typer.Option(None, "--strict/--lenient", help="Exit 1 when every file failed"),
    log_path: Optional[Path] = typer.Option(None, "--log-path", help="Path to log file (overrides config)"),
    debug: bool = typer.Option(False, "--debug/--no-debug", help="Enable verbose debug logging"),
):
    """Convert every FLAC under INPUT_DIR into OUTPUT_DIR/Artist/Year - Album/."""
    try:
        config = load_config(config_path)
        if threads is not None:
            if threads <= 0:
                _fail("--threads must be positive")
            config.general.threads = threads
        if bitrate is not None: config.general.bitrate_kbps = bitrate
        if cover_width is not None: config.cover.width = cover_width
        if strict is not None: config.general.fail_on_all_failed = strict
        if log_path is not None: config.general.log_path = str(log_path)
        if debug: config.general.debug = True
        # Re-validate after overrides
        config = type(config).model_validate(config.model_dump())
    except (FileNotFoundError, ValueError, ValidationError) as exc:
        _fail(str(exc))

    missing = [tool for tool in REQUIRED_TOOLS if shutil.which(tool) is None]
    if missing:
        _fail(f"Required tool(s) not found on PATH: {', '.join(missing)}")

    if not input_dir.exists():
        _fail(f"Input directory does not exist: {input_dir}")
    if not input_dir.is_dir():
        _fail(f"Input path is not a directory: {input_dir}")
    input_dir = input_dir.resolve()

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        _fail(f"Cannot create output directory {output_dir}: {exc}")
    output_dir = output_dir.resolve()

    log_path_value = Path(config.general.log_path) if config.general.log_path else None
    logger = setup_logging(output_dir, debug=config.general.debug, log_path=log_path_value)
    logger.info(f"FBC started: input={input_dir}, output={output_dir}")
    logger.info(
        f"Config: threads={config.general.threads or 'auto'}, bitrate={config.general.bitrate_kbps}k, "
        f"cover_width={config.cover.width}, strict={config.general.fail_on_all_failed}"
    )

    HousekeepingService().cleanup_temp_files(output_dir)

    bus = EventBus()
    ConsoleReporter(bus, input_root=input_dir)

    ffprobe = FFprobeAdapter(timeout=config.general.probe_timeout_s)
    ffmpeg = FFmpegAdapter()
    cover_resolver = CoverArtResolver(
        config=config.cover,
        ffmpeg_adapter=ffmpeg,
        resampler=ImageResampler(config.cover.width),
        extract_timeout=config.general.extract_timeout_s,
        event_bus=bus,
    )
    worker = FileWorker(
        config=config,
        output_root=output_dir,
        metadata_resolver=MetadataResolver(ffprobe),
        ffmpeg_adapter=ffmpeg,
        cover_resolver=cover_resolver,
        event_bus=bus,
    )
    orchestrator = Orchestrator(
        config=config,
        event_bus=bus,
        file_scanner=FileScanner(config.general.extensions, exclude_dirs=[output_dir]),
        worker=worker,
    )

    try:
        summary = orchestrator.run(input_dir)
    except KeyboardInterrupt:
        typer.secho("\nConversion stopped by user (Ctrl+C)", fg=typer.colors.YELLOW)
        raise typer.Exit(code=130)

    if summary.all_failed and config.general.fail_on_all_failed:
        logger.error(f"All {summary.total} file(s) failed")
        typer.secho(f"All {summary.total} file(s) failed.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
