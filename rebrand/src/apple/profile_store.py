import plistlib
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from asn1crypto.cms import ContentInfo

from rebrand.logger import get_console
from rebrand.src.core.identity import DistributionChannel


def dump_prov(prov_file: Path) -> dict:
    """Read a provisioning profile without using macOS security command"""
    with open(prov_file, "rb") as f:
        content_info = ContentInfo.load(f.read())
    signed_data = content_info["content"]
    plist_data = signed_data["encap_content_info"]["content"].native
    return plistlib.loads(plist_data)


@dataclass
class InstalledProfile:
    path: Path
    uuid: str
    app_identifier: str  # TEAMID.bundle.id from the entitlements
    is_adhoc: bool
    creation_date: Optional[datetime]
    is_development: bool = False

    @property
    def bundle_id(self) -> str:
        return self.app_identifier.split(".", 1)[1] if "." in self.app_identifier else ""

    @property
    def channel(self) -> Optional[DistributionChannel]:
        """Distribution channel, or None for development profiles"""
        if self.is_development:
            return None
        return DistributionChannel.ADHOC if self.is_adhoc else DistributionChannel.APPSTORE


def _profile_from_data(path: Path, data: Dict[str, Any]) -> InstalledProfile:
    entitlements = data.get("Entitlements", {})
    return InstalledProfile(
        path=path,
        uuid=data.get("UUID", path.stem),
        app_identifier=entitlements.get("application-identifier", ""),
        # App Store profiles list no devices; ad hoc and development ones do
        is_adhoc=bool(data.get("ProvisionedDevices")),
        creation_date=data.get("CreationDate"),
        is_development=bool(entitlements.get("get-task-allow", False)),
    )


class ProfileStore:
    """Installed .mobileprovision files in one directory"""

    def __init__(self, profile_dir: Path):
        self.profile_dir = Path(profile_dir).expanduser()
        self.console = get_console()

    def list_profiles(self) -> List[InstalledProfile]:
        profiles = []
        if not self.profile_dir.is_dir():
            return profiles

        for path in sorted(self.profile_dir.glob("*.mobileprovision")):
            try:
                profiles.append(_profile_from_data(path, dump_prov(path)))
            except (ValueError, KeyError, TypeError, plistlib.InvalidFileException) as e:
                self.console.log(f"[yellow]Skipping unreadable profile {path.name}: {e}[/]")
        return profiles

    def find_profile(
        self, bundle_id: str, channel: DistributionChannel
    ) -> Optional[InstalledProfile]:
        """Newest installed profile for a bundle id and distribution channel"""
        candidates = [
            p
            for p in self.list_profiles()
            if p.bundle_id == bundle_id and p.channel is channel
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda p: p.creation_date or datetime.min)
