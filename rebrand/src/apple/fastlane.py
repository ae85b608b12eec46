import os
from pathlib import Path
from typing import List, Optional

from rebrand.logger import get_console
from rebrand.src.apple.profile_store import ProfileStore
from rebrand.src.apple.provisioning_resolver import DEFAULT_PROFILE_DIR, profile_env_key
from rebrand.src.apple.signing_service import (
    AppRecordRequest,
    ResignRequest,
    SigningMaterials,
    SigningMaterialsRequest,
    SigningService,
)
from rebrand.src.core.identity import DistributionChannel
from rebrand.src.utils.process import run_process


class FastlaneSigningService(SigningService):
    """Signing capabilities backed by the fastlane produce, match and sigh tools"""

    def __init__(self, fastlane_bin: str = "fastlane", profile_dir: Optional[Path] = None):
        self.fastlane_bin = fastlane_bin
        self.profile_store = ProfileStore(profile_dir or DEFAULT_PROFILE_DIR)
        self.console = get_console()

    def _fastlane(self, *args: str) -> None:
        env = dict(os.environ)
        # Never block a build pipeline on an interactive prompt
        env.setdefault("FASTLANE_SKIP_UPDATE_CHECK", "1")
        env.setdefault("FASTLANE_HIDE_CHANGELOG", "1")
        run_process(self.fastlane_bin, *args, env=env)

    def produce(self, request: AppRecordRequest) -> None:
        self.console.log(f"[blue]Creating app record for[/] {request.app_identifier}")
        args: List[str] = [
            "produce",
            "--app_identifier",
            request.app_identifier,
            "--app_name",
            request.app_name,
            "--language",
            request.language,
            "--app_version",
            request.app_version,
            "--sku",
            request.sku,
            "--team_name",
            request.team_name,
        ]
        if request.skip_itc:
            args.append("--skip_itc")
        self._fastlane(*args)

    def fetch_signing_materials(self, request: SigningMaterialsRequest) -> SigningMaterials:
        self.console.log(
            f"[blue]Fetching {request.type} signing materials for[/] {request.app_identifier}"
        )
        args = ["match", request.type, "--app_identifier", request.app_identifier]
        if request.force:
            args.append("--force")
        self._fastlane(*args)

        # match publishes the profile name only inside its own process, so look it up
        channel = DistributionChannel(request.type)
        profile = self.profile_store.find_profile(request.app_identifier, channel)
        if profile is None:
            self.console.log(
                f"[yellow]No installed {request.type} profile found for {request.app_identifier}[/]"
            )
            return SigningMaterials(app_identifier=request.app_identifier)

        # Resolved later as <profile dir>/<name>.mobileprovision
        os.environ[profile_env_key(request.app_identifier, channel)] = profile.path.stem
        self.console.log(f"[green]Found installed profile:[/] {profile.path.name}")
        return SigningMaterials(
            app_identifier=request.app_identifier, profile_name=profile.path.stem
        )

    def resign(self, request: ResignRequest) -> None:
        self.console.log(f"[blue]Re-signing[/] {request.ipa.name}")
        args = [
            "sigh",
            "resign",
            str(request.ipa),
            "--signing_identity",
            request.signing_identity,
        ]
        for bundle_id, profile_path in request.provisioning_profiles.items():
            args.extend(["--provisioning_profile", f"{bundle_id}={profile_path}"])
        self._fastlane(*args)
