import os
from pathlib import Path
from typing import Mapping, Optional

from rebrand.logger import get_console
from rebrand.src.apple.signing_service import SigningMaterials
from rebrand.src.core.errors import ProvisioningNotFoundError
from rebrand.src.core.identity import DistributionChannel

DEFAULT_PROFILE_DIR = Path("~/Library/MobileDevice/Provisioning Profiles")
PROFILE_EXTENSION = ".mobileprovision"


def profile_env_key(effective_bundle_id: str, channel: DistributionChannel) -> str:
    """Environment key under which a registered profile's name is published"""
    return f"sigh_{effective_bundle_id}_{channel.profile_suffix}"


class ProvisioningResolver:
    """Maps an effective bundle id and channel to an installed profile path"""

    def __init__(
        self,
        profile_dir: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.profile_dir = Path(profile_dir or DEFAULT_PROFILE_DIR).expanduser()
        self.environ = environ if environ is not None else os.environ
        self.console = get_console()

    def resolve(
        self,
        effective_bundle_id: str,
        channel: DistributionChannel,
        materials: Optional[SigningMaterials] = None,
    ) -> Path:
        env_key = profile_env_key(effective_bundle_id, channel)

        profile_name = materials.profile_name if materials else None
        if profile_name:
            self.console.log(f"[blue]Profile name from signing materials:[/] {profile_name}")
        else:
            profile_name = self.environ.get(env_key)
            if profile_name:
                self.console.log(f"[blue]Profile name from {env_key}:[/] {profile_name}")

        if not profile_name or not profile_name.strip():
            raise ProvisioningNotFoundError(env_key, self.profile_dir)

        profile_path = self.profile_dir / f"{profile_name.strip()}{PROFILE_EXTENSION}"
        self.console.log(f"[green]Provisioning profile:[/] {profile_path}")
        return profile_path
