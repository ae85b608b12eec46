from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from rebrand.logger import get_console
from rebrand.src.apple.provisioning_resolver import ProvisioningResolver
from rebrand.src.apple.signing_service import SigningService
from rebrand.src.core.identity import DistributionChannel
from rebrand.src.core.verifier import verify_inputs
from rebrand.src.ipa.app_transformer import AppArchiveTransformer
from rebrand.src.ipa.dsym_transformer import DebugSymbolTransformer
from rebrand.src.utils.config_loader import load_brand_config


@dataclass
class BrandRequest:
    """Everything one branding run needs"""

    ipa_path: Path
    dsym_path: Path
    config_path: Path
    localization_path: Path
    asset_path: Path
    team_name: str
    signing_identity: str
    ad_hoc: bool = False
    app_version: Optional[str] = None
    output_dir: Path = field(default_factory=Path.cwd)
    flatten_icons: bool = False


@dataclass
class BrandResult:
    app_artifact_path: Path
    debug_symbol_artifact_path: Path

    def as_dict(self) -> Dict[str, Path]:
        return {
            "app_artifact_path": self.app_artifact_path,
            "debug_symbol_artifact_path": self.debug_symbol_artifact_path,
        }


class BrandPipeline:
    """Verifies inputs, then rebrands the app archive and its dSYM archive"""

    def __init__(self, signing: SigningService, resolver: Optional[ProvisioningResolver] = None):
        self.signing = signing
        self.resolver = resolver or ProvisioningResolver()
        self.console = get_console()

    def run(self, request: BrandRequest) -> BrandResult:
        self.console.log("[bold]The rebrand pipeline is awake![/]")

        # Nothing is extracted or modified until every input is known to exist
        paths = verify_inputs(
            {
                "ipa_path": request.ipa_path,
                "dsym_path": request.dsym_path,
                "config_path": request.config_path,
                "localization_path": request.localization_path,
                "asset_path": request.asset_path,
            }
        )

        config = load_brand_config(paths["config_path"])
        channel = DistributionChannel.from_flag(request.ad_hoc)

        app_transformer = AppArchiveTransformer(
            signing=self.signing,
            resolver=self.resolver,
            localization_path=paths["localization_path"],
            asset_path=paths["asset_path"],
            team_name=request.team_name,
            signing_identity=request.signing_identity,
            output_dir=request.output_dir,
            flatten_icons=request.flatten_icons,
        )
        dsym_transformer = DebugSymbolTransformer(output_dir=request.output_dir)

        app_artifact = app_transformer.transform(
            paths["ipa_path"], config, channel, request.app_version
        )
        dsym_artifact = dsym_transformer.transform(
            paths["dsym_path"], config, channel, request.app_version
        )

        return BrandResult(
            app_artifact_path=app_artifact, debug_symbol_artifact_path=dsym_artifact
        )
