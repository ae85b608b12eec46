import argparse
import sys

from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme
from rich_argparse import RichHelpFormatter

from rebrand.arguments import add_branding_arguments
from rebrand.src.constants.cli_constants import (
    __version__,
    get_banner_text,
    APP_DESCRIPTION,
)


class RebrandHelpFormatter(RichHelpFormatter):
    """Custom formatter for the rebrand CLI that enhances the output with rich styling."""

    def __init__(self, prog):
        super().__init__(prog, max_help_position=30, width=100)
        self.console = Console(
            theme=Theme(
                {
                    "command": "bold cyan",
                    "argument": "green",
                    "option": "yellow",
                    "version": "blue",
                    "title": "bold magenta",
                }
            )
        )

    def start_section(self, heading):
        heading_text = Text(heading, style="title")
        super().start_section(str(heading_text))


def display_banner():
    """Display a stylish banner for rebrand."""
    console = Console()
    version_info = Text(f"v{__version__}", style="blue")
    tagline = Text(APP_DESCRIPTION, style="italic")

    panel = Panel.fit(
        Text.assemble(get_banner_text(), "\n", tagline, "\n", version_info),
        border_style="green",
        padding=(1, 2),
    )
    console.print(panel)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rebrand",
        description=f"rebrand: {APP_DESCRIPTION}",
        formatter_class=RebrandHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"rebrand {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command")

    brand_parser = subparsers.add_parser(
        "brand",
        help="Rebrand an IPA and its dSYM",
        formatter_class=RebrandHelpFormatter,
        description="Rewrite bundle identity, inject brand assets and re-sign for each brand config.",
    )
    add_branding_arguments(brand_parser)

    subparsers.add_parser(
        "setup",
        help="Setup rebrand settings",
        formatter_class=RebrandHelpFormatter,
        description="Interactive wizard to store your team name, signing identity and paths.",
    )
    return parser


def main(argv=None):
    # sigh_* profile names and fastlane credentials may live in a .env file
    load_dotenv()

    if argv is None:
        argv = sys.argv[1:]
    if not argv or "-h" in argv or "--help" in argv:
        display_banner()

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "brand":
        from rebrand.commands.brand import run_brand_command

        return run_brand_command(args)
    elif args.command == "setup":
        from rebrand.commands.setup import run_setup_command

        return run_setup_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
