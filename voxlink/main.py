"""Command-line entry point for Voxlink."""

import os
import sys
import logging
from pathlib import Path
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.markup import escape

from . import __version__
from .config import VoxlinkConfig
from .control.dispatcher import OUTPUT_MODES, RecordAction, RecordDispatcher, RecordOverrides
from .errors import (
    ConfigError,
    DaemonNotRunning,
    MailboxWriteError,
    SignalDeliveryError,
    StateFileNotConfigured,
    UnknownProfileError,
)
from .models.status import ExtendedInfo
from .status.follow import StatusReader
from .status.icons import ICON_THEMES, icons_from_config
from .ui.monitor import MonitorApp

logger = logging.getLogger(__name__)

err_console = Console(stderr=True)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

STATE_FILE_REMEDIATION = """\
state_file is not configured.

Status monitoring requires the daemon to write its state to a file.
Add this to ~/.config/voxlink/config.yaml:

  state_file: auto"""

TOGGLE_REMEDIATION = """\
Cannot toggle recording without state_file configured.

Add to your config.yaml:
  state_file: auto

Or use 'voxlink record start' / 'voxlink record stop' instead."""

START_DAEMON_HINT = "Start it with: systemctl --user start voxlink"


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config.

    Raises:
        ConfigError: if the level is not one of LOG_LEVELS
    """
    level = str(level).upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"Invalid logging.level '{level.lower()}': expected one of {', '.join(LOG_LEVELS)}")

    log_file_path = config.get_log_file_path()
    console_output = config.get('logging.console_output', True)

    handlers = []

    # File handler - always write to file
    try:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path)
    except OSError as e:
        err_console.print(f"[yellow]Cannot open log file {escape(log_file_path)}: {escape(str(e))}[/yellow]")
    else:
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    # Console handler goes to stderr: stdout carries the status stream
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.debug(f"Voxlink {__version__} logging to {log_file_path} at {level}")


def fail(message: str) -> NoReturn:
    err_console.print(f"[red]✗[/red] {message}")
    sys.exit(1)


def profile_guidance(error: UnknownProfileError) -> str:
    message = f"Profile '{escape(error.profile)}' not found.\n\n"
    if error.available:
        return message + "Available profiles: " + escape(", ".join(error.available))
    return message + (
        "No profiles configured. Add profiles to your config.yaml:\n\n"
        "profiles:\n"
        f"  {escape(error.profile)}:\n"
        "    post_process_command: \"your-command-here\""
    )


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              help="Path to configuration YAML file (default: ~/.config/voxlink/config.yaml)")
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False),
              help="Set logging level (overrides logging.level)")
@click.version_option(__version__, prog_name="voxlink")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """Voxlink - control and status plane for the voice dictation daemon."""
    try:
        config = VoxlinkConfig(config_path)
    except ConfigError as e:
        fail(escape(str(e)))

    try:
        setup_logging(config, log_level or config.get('logging.level', 'INFO'))
    except ConfigError as e:
        fail(escape(str(e)))
    ctx.obj = config


@cli.command()
@click.option("--follow", is_flag=True, help="Keep running and print every state change")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text",
              show_default=True, help="Output format")
@click.option("--extended", is_flag=True, help="Include model, device and backend in JSON output")
@click.option("--icon-theme", metavar="THEME",
              help=f"Icon theme for JSON output ({', '.join(sorted(ICON_THEMES))}; unknown names use emoji)")
@click.pass_obj
def status(config: VoxlinkConfig, follow: bool, output_format: str, extended: bool,
           icon_theme: Optional[str]) -> None:
    """Print the daemon state (for status bars and scripts)."""
    state_path = config.resolve_state_file()
    if state_path is None:
        fail(STATE_FILE_REMEDIATION)

    reader = StatusReader(
        state_path,
        config.pid_file(),
        output_format=output_format,
        icons=icons_from_config(config, icon_theme),
        extended=ExtendedInfo.from_config(config) if extended else None,
    )

    try:
        if follow:
            reader.follow()
        else:
            reader.run_once()
    except KeyboardInterrupt:
        logger.info("Status follow interrupted")
    except BrokenPipeError:
        # The reading end went away; keep the interpreter from failing on flush
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        logger.info("Status output closed by reader")


@cli.command()
@click.argument("action", type=click.Choice([action.value for action in RecordAction]))
@click.option("--output-mode", type=click.Choice(OUTPUT_MODES), help="Output mode for the next transcription")
@click.option("--file", "file_path", type=click.Path(dir_okay=False), help="Write the next transcription to this file")
@click.option("--model", help="Model to use for the next transcription")
@click.option("--profile", help="Profile to use for the next transcription")
@click.pass_obj
def record(config: VoxlinkConfig, action: str, output_mode: Optional[str], file_path: Optional[str],
           model: Optional[str], profile: Optional[str]) -> None:
    """Control recording in the running daemon: start, stop, toggle or cancel."""
    overrides = RecordOverrides(output_mode=output_mode, file_path=file_path, model=model, profile=profile)
    dispatcher = RecordDispatcher(config)

    try:
        dispatcher.dispatch(RecordAction(action), overrides)
    except DaemonNotRunning as e:
        fail(f"{e}\n{START_DAEMON_HINT}")
    except UnknownProfileError as e:
        fail(profile_guidance(e))
    except StateFileNotConfigured:
        fail(TOGGLE_REMEDIATION)
    except (MailboxWriteError, SignalDeliveryError, ConfigError) as e:
        fail(escape(str(e)))


@cli.command()
@click.pass_obj
def ui(config: VoxlinkConfig) -> None:
    """Run the terminal overlay and tray monitor."""
    MonitorApp(config).run()


def main() -> None:
    """Main entry point for Voxlink."""
    cli(prog_name="voxlink")


if __name__ == "__main__":
    main()
