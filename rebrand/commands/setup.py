from pathlib import Path

import toml
from rich import box
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text

from rebrand.logger import get_console
from rebrand.src.apple.provisioning_resolver import DEFAULT_PROFILE_DIR
from rebrand.src.utils.config_loader import get_settings_path

console = get_console()


def ensure_directory_exists(directory_path: Path) -> bool:
    """Create directory if it doesn't exist."""
    if not directory_path.exists():
        directory_path.mkdir(parents=True, exist_ok=True)
        return False
    return True


def create_or_update_settings(settings_path: Path) -> bool:
    """Create or update the settings file based on user input."""
    settings = {}
    if settings_path.exists():
        try:
            settings = toml.load(settings_path)
        except toml.TomlDecodeError as e:
            console.print(f"[yellow]Warning: Could not parse existing settings: {e}[/yellow]")
            if not Confirm.ask("Would you like to create new settings?", default=True):
                return False
            settings = {}

    console.print(
        Panel("Let's configure your rebrand settings", style="bold green", box=box.ROUNDED)
    )

    signing = settings.setdefault("signing", {})
    console.print("\n[bold blue]Signing Configuration[/bold blue]")
    console.print("Used by every brand unless overridden on the command line.")
    signing["team_name"] = Prompt.ask(
        "App Store Connect team name", default=signing.get("team_name", "")
    )
    signing["signing_identity"] = Prompt.ask(
        "Code signing identity",
        default=signing.get("signing_identity", "Apple Distribution"),
    )

    paths = settings.setdefault("paths", {})
    console.print("\n[bold blue]Paths[/bold blue]")
    paths["profile_dir"] = Prompt.ask(
        "Provisioning profile directory",
        default=paths.get("profile_dir", str(DEFAULT_PROFILE_DIR)),
    )
    output_dir = Prompt.ask(
        "Output directory for branded artifacts (blank for current directory)",
        default=paths.get("output_dir", ""),
    )
    if output_dir:
        paths["output_dir"] = output_dir
    else:
        paths.pop("output_dir", None)

    with open(settings_path, "w") as f:
        toml.dump(settings, f)

    return True


def run_setup_command(args) -> int:
    """Run the setup command."""
    console.print(
        Panel.fit(
            Text("rebrand Setup Wizard", style="bold magenta"),
            subtitle="Let's get your brands building!",
            border_style="green",
            padding=(1, 8),
        )
    )

    settings_path = get_settings_path()
    existed = ensure_directory_exists(settings_path.parent)

    table = Table(title="Directory Structure", box=box.ROUNDED)
    table.add_column("Directory", style="cyan")
    table.add_column("Status", style="green")
    table.add_row(
        str(settings_path.parent), "✓ Already exists" if existed else "✓ Created"
    )
    console.print(table)

    if settings_path.exists() and not Confirm.ask(
        f"Edit the existing settings at {settings_path}?", default=True
    ):
        return 0

    if not create_or_update_settings(settings_path):
        console.print("[bold red]Failed to write settings.[/bold red]")
        return 1

    console.print(f"[bold green]✓ Settings saved to {settings_path}[/bold green]")
    console.print(
        "\n[bold cyan]What's next?[/bold cyan]\n\n"
        "• To build a brand: [green]rebrand brand --ipa App.ipa --dsym App.app.dSYM.zip "
        "--config brand.json --localizations l10n --assets assets[/green]\n"
        "• For more help: [green]rebrand --help[/green]"
    )
    return 0
