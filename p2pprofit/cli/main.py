"""Main CLI entry point for P2P Profit.

This module provides the main click group and lazy loading
for command modules to keep startup fast.
"""

import click
from rich.console import Console

# Console for rich output
console = Console()


class LazyGroup(click.Group):
    """A click Group that lazily loads commands.

    Command modules are only imported when one of their
    commands is actually invoked.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        """Initialize the lazy group.

        Args:
            lazy_subcommands: Mapping of command names to module paths.
        """
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(set(base + lazy))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, lazily loading if needed."""
        if cmd_name in self.commands:
            return self.commands[cmd_name]

        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)

        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Lazily load a command from its module path."""
        import importlib

        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        # "import" is a keyword, so commands may live under another attribute name
        cmd = None
        attr = getattr(module, cmd_name, None)
        if isinstance(attr, click.Command):
            cmd = attr
        else:
            for attr_name in dir(module):
                attr = getattr(module, attr_name)
                if isinstance(attr, click.Command) and attr.name == cmd_name:
                    cmd = attr
                    break

        if cmd is None:
            raise click.ClickException(f"Could not find command '{cmd_name}' in {module_path}")

        self.add_command(cmd)
        return cmd


LAZY_SUBCOMMANDS = {
    "init": "p2pprofit.cli.ledger",
    "import": "p2pprofit.cli.ledger",
    "trades": "p2pprofit.cli.ledger",
    "summary": "p2pprofit.cli.report",
    "monthly": "p2pprofit.cli.report",
    "series": "p2pprofit.cli.report",
    "methods": "p2pprofit.cli.report",
    "currencies": "p2pprofit.cli.report",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="p2pprofit")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """P2P Profit - realized profit for peer-to-peer asset trades.

    Import your completed trades, then report realized profit using
    FIFO or weighted-average-cost accounting.

    \b
    Quick Start:
      p2pprofit init                 # Create a config file
      p2pprofit import trades.csv    # Load trades into the ledger
      p2pprofit summary --method FIFO
      p2pprofit series --period week
    """
    from p2pprofit.config import load_config
    from p2pprofit.logging_setup import setup_logging

    ctx.ensure_object(dict)
    config = load_config()
    setup_logging("DEBUG" if verbose else config["logging"]["level"])
    ctx.obj["config"] = config


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
