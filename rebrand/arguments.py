import argparse
from pathlib import Path
from typing import List

from rich_argparse import RawDescriptionRichHelpFormatter

from rebrand.src.core.pipeline import BrandRequest
from rebrand.src.utils.config_loader import get_output_dir, get_signing_defaults


def create_parser():
    """Create and return an argument parser with branding arguments."""
    parser = argparse.ArgumentParser(
        prog="rebrand",
        description="Rebrand an IPA and its dSYM for one or more brands",
        formatter_class=RawDescriptionRichHelpFormatter,
    )
    add_branding_arguments(parser)
    return parser


def add_branding_arguments(parser):
    """Add all branding-related arguments to an existing parser."""
    # Build inputs
    parser.add_argument(
        "--ipa", dest="ipa_path", type=Path, required=True, help="Path to the IPA to rebrand"
    )
    parser.add_argument(
        "--dsym",
        dest="dsym_path",
        type=Path,
        required=True,
        help="Path to the zipped .app.dSYM of the same build",
    )
    parser.add_argument(
        "--config",
        dest="config_paths",
        type=Path,
        action="append",
        required=True,
        help="Path to a brand config JSON; repeat to build several brands",
    )
    parser.add_argument(
        "--localizations",
        dest="localization_path",
        type=Path,
        required=True,
        help="Directory of .lproj folders copied into the app bundle",
    )
    parser.add_argument(
        "--assets",
        dest="asset_path",
        type=Path,
        required=True,
        help="Directory of image assets copied into the app bundle",
    )

    # Signing
    parser.add_argument(
        "--team-name",
        type=str,
        help="App Store Connect team name [default: [signing] team_name in settings]",
    )
    parser.add_argument(
        "--signing-identity",
        type=str,
        help="Code signing identity [default: [signing] signing_identity in settings]",
    )
    parser.add_argument(
        "--adhoc",
        action="store_true",
        dest="ad_hoc",
        help="Build an ad hoc variant (.adhoc bundle ID suffix, no store record) [default: disabled]",
    )
    parser.add_argument(
        "--app-version",
        type=str,
        help="CFBundleShortVersionString to write [default: keep the build's version]",
    )
    parser.add_argument(
        "--profile-dir",
        type=Path,
        help="Directory holding installed provisioning profiles [default: ~/Library/MobileDevice/Provisioning Profiles]",
    )
    parser.add_argument(
        "--fastlane",
        dest="fastlane_bin",
        type=str,
        default="fastlane",
        help="fastlane executable to drive produce, match and sigh [default: fastlane]",
    )

    parser.add_argument(
        "--flatten-icons",
        action="store_true",
        help="Composite transparent AppIcon*.png files onto white for App Store builds [default: disabled]",
    )

    # Output
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Where branded artifacts are written [default: current directory]",
    )


def create_brand_requests(args) -> List[BrandRequest]:
    """Convert parsed arguments to one BrandRequest per brand config"""
    defaults = get_signing_defaults()
    team_name = args.team_name or defaults["team_name"]
    signing_identity = args.signing_identity or defaults["signing_identity"]

    missing = [
        flag
        for flag, value in (
            ("--team-name", team_name),
            ("--signing-identity", signing_identity),
        )
        if not value
    ]
    if missing:
        raise ValueError(
            f"Missing {', '.join(missing)}; pass it or set it in the [signing] section of your settings"
        )

    output_dir = args.output_dir or get_output_dir()

    return [
        BrandRequest(
            ipa_path=args.ipa_path,
            dsym_path=args.dsym_path,
            config_path=config_path,
            localization_path=args.localization_path,
            asset_path=args.asset_path,
            team_name=team_name,
            signing_identity=signing_identity,
            ad_hoc=args.ad_hoc,
            app_version=args.app_version,
            output_dir=output_dir,
            flatten_icons=args.flatten_icons,
        )
        for config_path in args.config_paths
    ]
