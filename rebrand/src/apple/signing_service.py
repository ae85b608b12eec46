from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

# Store records only need a placeholder; the binary carries the real version
APP_RECORD_LANGUAGE = "English"
APP_RECORD_VERSION = "1.0"


@dataclass
class AppRecordRequest:
    """Inputs for creating the developer portal / App Store Connect record"""

    app_identifier: str
    app_name: str
    sku: str
    team_name: str
    skip_itc: bool = False  # Ad hoc builds never reach the store
    language: str = APP_RECORD_LANGUAGE
    app_version: str = APP_RECORD_VERSION


@dataclass
class SigningMaterialsRequest:
    """Inputs for fetching or registering the certificate and profile"""

    app_identifier: str
    type: str  # "adhoc" or "appstore"
    force: bool = False


@dataclass
class SigningMaterials:
    """What the signing-material call hands back.

    ``profile_name`` is the installed profile's file stem (usually its UUID)
    when the implementation knows it.
    """

    app_identifier: str
    profile_name: Optional[str] = None


@dataclass
class ResignRequest:
    ipa: Path
    signing_identity: str
    provisioning_profiles: Dict[str, Path] = field(default_factory=dict)


class SigningService(ABC):
    """External app-record, signing-material and resign capabilities"""

    @abstractmethod
    def produce(self, request: AppRecordRequest) -> None:
        """Create the app record for an identifier"""

    @abstractmethod
    def fetch_signing_materials(self, request: SigningMaterialsRequest) -> SigningMaterials:
        """Fetch or register the certificate and provisioning profile"""

    @abstractmethod
    def resign(self, request: ResignRequest) -> None:
        """Re-sign an archive in place"""
