import json
import plistlib
import tempfile
import zipfile
from pathlib import Path
from typing import List, Optional

import pytest
from PIL import Image

from rebrand.src.apple.signing_service import (
    AppRecordRequest,
    ResignRequest,
    SigningMaterials,
    SigningMaterialsRequest,
    SigningService,
)
from rebrand.src.core.pipeline import BrandRequest

GENERIC_BUNDLE_ID = "com.generic.app"


class FakeSigningService(SigningService):
    """Records every external signing call instead of running fastlane"""

    def __init__(self, profile_name: Optional[str] = "PROFILE-UUID"):
        self.profile_name = profile_name
        self.calls: List[tuple] = []

    def produce(self, request: AppRecordRequest) -> None:
        self.calls.append(("produce", request))

    def fetch_signing_materials(self, request: SigningMaterialsRequest) -> SigningMaterials:
        self.calls.append(("match", request))
        return SigningMaterials(
            app_identifier=request.app_identifier, profile_name=self.profile_name
        )

    def resign(self, request: ResignRequest) -> None:
        assert request.ipa.exists()
        self.calls.append(("resign", request))

    def requests_for(self, name: str) -> list:
        return [request for call, request in self.calls if call == name]


def write_zip(path: Path, files: dict) -> Path:
    """files maps archive names to bytes, or to (bytes, unix mode)"""
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            mode = 0o644
            if isinstance(content, tuple):
                content, mode = content
            info = zipfile.ZipInfo(name)
            info.external_attr = mode << 16
            zf.writestr(info, content)
    return path


def read_zip_plist(archive: Path, name: str) -> dict:
    with zipfile.ZipFile(archive) as zf:
        return plistlib.loads(zf.read(name))


@pytest.fixture
def fake_signing():
    return FakeSigningService()


@pytest.fixture
def scratch_dir(tmp_path, monkeypatch):
    """Redirect temporary directories so leftovers can be inspected"""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    return scratch


@pytest.fixture
def ipa_file(tmp_path):
    info = {
        "CFBundleIdentifier": GENERIC_BUNDLE_ID,
        "CFBundleExecutable": "Example",
        "CFBundleShortVersionString": "1.0.0",
        "CFBundleDisplayName": "Example",
    }
    return write_zip(
        tmp_path / "Example.ipa",
        {
            "Payload/Example.app/Info.plist": plistlib.dumps(info, fmt=plistlib.FMT_BINARY),
            "Payload/Example.app/Example": (b"\xcf\xfa\xed\xfe", 0o755),
            "Payload/Example.app/en.lproj/Localizable.strings": b'"greeting" = "Hello";\n',
        },
    )


@pytest.fixture
def dsym_file(tmp_path):
    info = {
        "CFBundleIdentifier": f"com.apple.xcode.dsym.{GENERIC_BUNDLE_ID}",
        "CFBundleShortVersionString": "1.0.0",
    }
    return write_zip(
        tmp_path / "Example.app.dSYM.zip",
        {
            "Example.app.dSYM/Contents/Info.plist": plistlib.dumps(info),
            "Example.app.dSYM/Contents/Resources/DWARF/Example": b"dwarf",
        },
    )


@pytest.fixture
def brand_config_file(tmp_path):
    path = tmp_path / "brand.json"
    path.write_text(
        json.dumps(
            {"CFBundleIdentifier": "com.ex.app", "basename": "ExampleBrand", "BRAND_CONFIG": "x"}
        )
    )
    return path


@pytest.fixture
def asset_dir(tmp_path):
    assets = tmp_path / "assets"
    assets.mkdir()
    Image.new("RGBA", (120, 120), (255, 0, 0, 128)).save(assets / "AppIcon60x60@2x.png")
    Image.new("RGB", (10, 10), (0, 0, 255)).save(assets / "logo.png")
    return assets


@pytest.fixture
def localization_dir(tmp_path):
    l10n = tmp_path / "l10n"
    (l10n / "en.lproj").mkdir(parents=True)
    (l10n / "fr.lproj").mkdir(parents=True)
    (l10n / "en.lproj" / "Localizable.strings").write_text(
        '/* Greeting */\n"greeting" = "Hello from ExampleBrand";\n', encoding="utf-8"
    )
    (l10n / "fr.lproj" / "Localizable.strings").write_text(
        '"greeting" = "Bonjour de ExampleBrand";\n"url" = "https://example.com";\n',
        encoding="utf-8",
    )
    return l10n


@pytest.fixture
def output_dir(tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    return out


@pytest.fixture
def brand_request(
    ipa_file, dsym_file, brand_config_file, localization_dir, asset_dir, output_dir
):
    return BrandRequest(
        ipa_path=ipa_file,
        dsym_path=dsym_file,
        config_path=brand_config_file,
        localization_path=localization_dir,
        asset_path=asset_dir,
        team_name="Example Team",
        signing_identity="Apple Distribution: Example (ABCDE12345)",
        app_version="2.3.1",
        output_dir=output_dir,
    )
