import typer
import yaml
from contextlib import nullcontext
from datetime import datetime
from pathlib import Path
from typing import Optional

from wbc.config.loader import load_config
from wbc.infrastructure.logging import setup_logging
from wbc.infrastructure.event_bus import EventBus
from wbc.infrastructure.file_scanner import FileScanner
from wbc.infrastructure.codec import PillowCodec
from wbc.infrastructure.progress import EventBusProgressSink
from wbc.pipeline.scheduler import ConversionScheduler
from wbc.pipeline.orchestrator import Orchestrator
from wbc.ui.state import UIState
from wbc.ui.manager import UIManager
from wbc.ui.dashboard import Dashboard
from wbc.domain.errors import ConversionError
from wbc.domain.models import SUPPORTED_EXTENSIONS

app = typer.Typer(help="WBC (WebP Batch Conversion) - convert JPEG/PNG/GIF trees to WebP")

@app.command()
def convert(
    input_dir_arg: Optional[Path] = typer.Argument(None, help="Input directory (optional if set in config)"),
    output_dir_arg: Optional[Path] = typer.Argument(None, help="Output directory (optional if set in config)"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
    quality: Optional[int] = typer.Option(None, "--quality", "-q", min=0, max=100, help="Override WebP quality (0-100)"),
    lossless: Optional[bool] = typer.Option(None, "--lossless/--lossy", help="Enable/disable lossless WebP"),
    threads: Optional[int] = typer.Option(None, "--threads", "-t", min=1, help="Override number of worker threads"),
    log_path: Optional[Path] = typer.Option(None, "--log-path", help="Path to log file (overrides config)"),
    no_ui: bool = typer.Option(False, "--no-ui", help="Disable the live dashboard"),
    debug: bool = typer.Option(False, "--debug/--no-debug", help="Enable verbose debug logging"),
):
    """Convert every supported image under INPUT_DIR into WebP files under OUTPUT_DIR."""
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    # Apply CLI overrides
    if quality is not None: config.general.quality = quality
    if lossless is not None: config.general.lossless = lossless
    if threads is not None: config.general.threads = threads
    if log_path is not None: config.general.log_path = str(log_path)
    if debug: config.general.debug = True
    if no_ui: config.ui.enabled = False

    input_dir = input_dir_arg or (Path(config.input_dir) if config.input_dir else None)
    output_dir = output_dir_arg or (Path(config.output_dir) if config.output_dir else None)
    if input_dir is None or output_dir is None:
        typer.secho(
            "Error: Both input and output directories must be provided (CLI or config).",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)
    if not input_dir.is_dir():
        typer.secho(f"Error: Input directory does not exist: {input_dir}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    try:
        log_path_value = Path(config.general.log_path) if config.general.log_path else None
        logger = setup_logging(output_dir, debug=config.general.debug, log_path=log_path_value)
    except OSError as exc:
        typer.secho(f"Error: Cannot create output directory {output_dir}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    settings = config.general.to_settings()
    logger.info(f"WBC started: input={input_dir}, output={output_dir}")
    logger.info(
        f"Config: threads={settings.max_concurrency}, quality={settings.quality}, "
        f"lossless={settings.lossless}, debug={config.general.debug}"
    )

    bus = EventBus()
    ui_state = UIState(recent_failures_max_items=config.ui.recent_failures_max_items)
    ui_state.config_lines = [
        f"Start: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"Input: {input_dir}",
        f"Output: {output_dir}",
        f"Threads: {settings.max_concurrency} | Quality: {settings.quality} | Lossless: {settings.lossless}",
        f"Extensions: {', '.join(SUPPORTED_EXTENSIONS)} → .webp",
    ]
    UIManager(bus, ui_state)

    orchestrator = Orchestrator(
        settings=settings,
        file_scanner=FileScanner(),
        scheduler=ConversionScheduler(PillowCodec(), event_bus=bus),
        progress_sink=EventBusProgressSink(bus),
        event_bus=bus,
    )

    display = (
        Dashboard(ui_state, refresh_per_second=config.ui.refresh_per_second)
        if config.ui.enabled else nullcontext()
    )

    try:
        with display:
            result = orchestrator.run(input_dir, output_dir)
    except KeyboardInterrupt:
        logger.info("Interrupted by user (Ctrl+C)")
        typer.secho("\n✓ Conversion stopped by user (Ctrl+C)", fg=typer.colors.YELLOW)
        raise typer.Exit(code=130)
    except ConversionError as exc:
        failed = ui_state.failed_count
        suffix = f" ({failed} file(s) failed)" if failed > 1 else ""
        typer.secho(f"Error: {exc}{suffix}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho(
        f"✓ All images converted: {result.completed_count}/{result.total_files} files",
        fg=typer.colors.GREEN,
    )

if __name__ == "__main__":
    app()
