from pathlib import Path
from typing import Optional

from rich.markup import escape

from rebrand.logger import get_console, log_stage
from rebrand.src.apple.provisioning_resolver import ProvisioningResolver
from rebrand.src.apple.signing_service import (
    AppRecordRequest,
    ResignRequest,
    SigningMaterialsRequest,
    SigningService,
)
from rebrand.src.core.identity import DistributionChannel, effective_bundle_id
from rebrand.src.ipa.archive import WorkingExtraction, find_single
from rebrand.src.ipa.asset_handler import AssetHandler
from rebrand.src.ipa.plist_mutator import PlistFormat, PlistMutator
from rebrand.src.utils.config_loader import BRAND_CONFIG_KEY, BrandConfig

APP_BUNDLE_GLOB = "Payload/*.app"
LOCALIZED_STRINGS_GLOB = "*.lproj/*.strings"


def apply_brand_config(
    mutator: PlistMutator,
    plist_path: Path,
    config: BrandConfig,
    channel: DistributionChannel,
    app_version: Optional[str] = None,
) -> None:
    """Write brand identity, payload and version into an app Info.plist"""
    with mutator.editing(plist_path):
        mutator.set_value(
            plist_path, "CFBundleIdentifier", effective_bundle_id(config, channel)
        )
        mutator.set_value(plist_path, BRAND_CONFIG_KEY, config.brand_config_payload)
        set_app_version(mutator, plist_path, app_version)


def set_app_version(
    mutator: PlistMutator, plist_path: Path, app_version: Optional[str]
) -> None:
    """Set CFBundleShortVersionString; without a version the existing one is kept"""
    if app_version is None:
        current = mutator.get_value(plist_path, "CFBundleShortVersionString")
        get_console().log(f"[yellow]No app version given, keeping[/] {current}")
        return
    mutator.set_value(plist_path, "CFBundleShortVersionString", app_version)


class AppArchiveTransformer:
    """Rebrands, repackages and re-signs an .ipa"""

    def __init__(
        self,
        signing: SigningService,
        resolver: ProvisioningResolver,
        localization_path: Path,
        asset_path: Path,
        team_name: str,
        signing_identity: str,
        output_dir: Optional[Path] = None,
        mutator: Optional[PlistMutator] = None,
        assets: Optional[AssetHandler] = None,
        flatten_icons: bool = False,
    ):
        self.signing = signing
        self.resolver = resolver
        self.localization_path = Path(localization_path)
        self.asset_path = Path(asset_path)
        self.team_name = team_name
        self.signing_identity = signing_identity
        self.output_dir = Path(output_dir or Path.cwd()).expanduser().resolve()
        self.mutator = mutator or PlistMutator()
        self.assets = assets or AssetHandler()
        self.flatten_icons = flatten_icons
        self.console = get_console()

    def transform(
        self,
        ipa_path: Path,
        config: BrandConfig,
        channel: DistributionChannel,
        app_version: Optional[str] = None,
    ) -> Path:
        log_stage(f"Applying {config.basename} IPA branding")

        with WorkingExtraction(ipa_path, prefix="rebrand_ipa_") as work:
            bundle_id = effective_bundle_id(config, channel)
            self.console.log(f"[cyan]Bundle ID:[/] {bundle_id} ({channel.value})")

            self.signing.produce(
                AppRecordRequest(
                    app_identifier=bundle_id,
                    app_name=config.basename,
                    sku=f"{config.basename}Mobile",
                    team_name=self.team_name,
                    skip_itc=channel.skip_store_record,
                )
            )

            materials = self.signing.fetch_signing_materials(
                SigningMaterialsRequest(
                    app_identifier=bundle_id,
                    type=channel.match_type,
                    force=channel.force_renew,
                )
            )

            app_dir = find_single(work.root, APP_BUNDLE_GLOB)
            self.console.log(f"[blue]App bundle:[/] {escape(app_dir.name)}")

            apply_brand_config(
                self.mutator, app_dir / "Info.plist", config, channel, app_version
            )

            self.assets.copy_tree(self.asset_path, app_dir)
            if self.flatten_icons and channel is DistributionChannel.APPSTORE:
                self.assets.flatten_app_icons(app_dir)

            self.assets.copy_tree(self.localization_path, app_dir)
            self.mutator.convert_format(
                app_dir, PlistFormat.BINARY, pattern=LOCALIZED_STRINGS_GLOB
            )

            ipa_destination = work.repackage(self.output_dir / f"{config.basename}.ipa")

            profile_path = self.resolver.resolve(bundle_id, channel, materials)
            self.signing.resign(
                ResignRequest(
                    ipa=ipa_destination,
                    signing_identity=self.signing_identity,
                    provisioning_profiles={bundle_id: profile_path},
                )
            )

        self.console.log(f"[bold green]Branded IPA:[/] {ipa_destination}")
        return ipa_destination
