from typing import Optional

import click
from netroute_core.codebase.debug import configure_logger
from netroute_core.config import load_settings

from .commands import CommandShell, run_shell


@click.command("shell")
@click.option(
    "--network",
    "network_path",
    type=click.Path(path_type=str, dir_okay=False, exists=True),
    default=None,
    help="Topology file to load before reading commands.",
)
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(path_type=str, dir_okay=False, exists=False),
    default="netroute.yaml",
    show_default=True,
    help="Optional settings YAML (router marker, computer prefix, log level).",
)
def shell(network_path: Optional[str], settings_path: str) -> None:
    """Read commands line by line from stdin until 'quit'."""
    settings = load_settings(settings_path)
    configure_logger(settings.log_level)

    cmd = CommandShell(settings=settings)
    if network_path:
        output = cmd.execute(f"load network {network_path}")
        if output is not None:
            click.echo(output)

    run_shell(cmd, click.get_text_stream("stdin"), click.echo)
