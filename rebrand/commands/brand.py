import argparse
import sys
from typing import List

from rich import box
from rich.table import Table

from rebrand.arguments import add_branding_arguments, create_brand_requests
from rebrand.logger import get_console
from rebrand.src.apple.fastlane import FastlaneSigningService
from rebrand.src.apple.provisioning_resolver import ProvisioningResolver
from rebrand.src.core.errors import RebrandError
from rebrand.src.core.pipeline import BrandPipeline, BrandRequest, BrandResult
from rebrand.src.utils.config_loader import get_profile_dir


def print_configuration_summary(console, requests: List[BrandRequest]) -> None:
    """Print the configuration summary."""
    first = requests[0]
    console.print("\n[bold blue]Branding Configuration:[/]")
    console.print(f"[cyan]Input IPA:[/] {first.ipa_path}")
    console.print(f"[cyan]Input dSYM:[/] {first.dsym_path}")
    console.print(f"[cyan]Channel:[/] {'ad hoc' if first.ad_hoc else 'App Store'}")
    console.print(f"[cyan]App version:[/] {first.app_version or 'unchanged'}")
    console.print(f"[cyan]Output directory:[/] {first.output_dir}")
    console.print("\n[cyan]Brands:[/]")
    for request in requests:
        console.print(f"  • {request.config_path}")


def print_results(console, results: List[BrandResult]) -> None:
    table = Table(title="Branded Artifacts", box=box.ROUNDED)
    table.add_column("IPA", style="green")
    table.add_column("dSYM", style="cyan")
    for result in results:
        table.add_row(
            str(result.app_artifact_path), str(result.debug_symbol_artifact_path)
        )
    console.print(table)


def main(parsed_args=None) -> int:
    """Main brand function that does the actual work.

    Args:
        parsed_args: Optional pre-parsed arguments (from CLI)
    """
    console = get_console()

    if parsed_args is None:
        parser = argparse.ArgumentParser(
            description="Rebrand an IPA and its dSYM for one or more brands.",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        add_branding_arguments(parser)
        args = parser.parse_args()
    else:
        args = parsed_args

    try:
        requests = create_brand_requests(args)
    except (ValueError, RebrandError) as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    print_configuration_summary(console, requests)

    profile_dir = args.profile_dir or get_profile_dir()
    signing = FastlaneSigningService(fastlane_bin=args.fastlane_bin, profile_dir=profile_dir)
    pipeline = BrandPipeline(signing, ProvisioningResolver(profile_dir=profile_dir))

    results = []
    for request in requests:
        try:
            results.append(pipeline.run(request))
        except RebrandError as e:
            console.print(f"\n[red]Error while branding {request.config_path}:[/] {e}")
            return 1

    print_results(console, results)
    return 0


def run_brand_command(args):
    """Entry point for the brand command from CLI"""
    return main(parsed_args=args)


# For direct script execution - route through the CLI
if __name__ == "__main__":
    from rebrand.cli import main as cli_main

    sys.exit(cli_main())
