import os
import plistlib
from datetime import datetime
from pathlib import Path

import pytest
from asn1crypto import cms

from rebrand.src.apple import fastlane
from rebrand.src.apple.fastlane import FastlaneSigningService
from rebrand.src.apple.profile_store import ProfileStore, dump_prov
from rebrand.src.apple.provisioning_resolver import ProvisioningResolver
from rebrand.src.apple.signing_service import (
    AppRecordRequest,
    ResignRequest,
    SigningMaterialsRequest,
)
from rebrand.src.core.errors import ExternalToolError
from rebrand.src.core.identity import DistributionChannel
from rebrand.src.utils.process import run_process


def write_profile(
    path: Path,
    uuid: str,
    bundle_id: str,
    adhoc: bool,
    created: datetime,
    development: bool = False,
) -> Path:
    data = {
        "UUID": uuid,
        "Name": f"match {uuid}",
        "CreationDate": created,
        "Entitlements": {
            "application-identifier": f"ABCDE12345.{bundle_id}",
            "get-task-allow": development,
        },
    }
    if adhoc or development:
        data["ProvisionedDevices"] = ["00008030-000000000000001E"]

    signed = cms.SignedData(
        {
            "version": "v1",
            "digest_algorithms": [],
            "encap_content_info": {
                "content_type": "data",
                "content": plistlib.dumps(data),
            },
            "signer_infos": [],
        }
    )
    content_info = cms.ContentInfo({"content_type": "signed_data", "content": signed})
    path.write_bytes(content_info.dump())
    return path


@pytest.fixture
def profile_dir(tmp_path):
    profiles = tmp_path / "Provisioning Profiles"
    profiles.mkdir()
    write_profile(
        profiles / "old.mobileprovision",
        "OLD",
        "com.ex.app",
        False,
        datetime(2024, 1, 1),
    )
    write_profile(
        profiles / "match_AppStore_comexapp.mobileprovision",
        "NEW",
        "com.ex.app",
        False,
        datetime(2025, 1, 1),
    )
    write_profile(
        profiles / "adhoc.mobileprovision",
        "ADHOC",
        "com.ex.app.adhoc",
        True,
        datetime(2025, 1, 1),
    )
    write_profile(
        profiles / "other.mobileprovision",
        "OTHER",
        "com.other.app",
        False,
        datetime(2026, 1, 1),
    )
    write_profile(
        profiles / "development.mobileprovision",
        "DEV",
        "com.ex.app.adhoc",
        False,
        datetime(2026, 6, 1),
        development=True,
    )
    (profiles / "junk.mobileprovision").write_bytes(b"not a profile")
    return profiles


@pytest.fixture
def commands(monkeypatch):
    recorded = []

    def fake_run_process(*cmd, cwd=None, env=None):
        recorded.append(list(cmd))

    monkeypatch.setattr(fastlane, "run_process", fake_run_process)
    return recorded


def test_dump_prov_reads_embedded_plist(profile_dir):
    data = dump_prov(profile_dir / "adhoc.mobileprovision")
    assert data["UUID"] == "ADHOC"
    assert data["Entitlements"]["application-identifier"] == "ABCDE12345.com.ex.app.adhoc"


def test_profile_store_picks_newest_matching_profile(profile_dir):
    store = ProfileStore(profile_dir)

    assert {p.uuid for p in store.list_profiles()} == {"OLD", "NEW", "ADHOC", "OTHER", "DEV"}
    assert store.find_profile("com.ex.app", DistributionChannel.APPSTORE).uuid == "NEW"
    assert store.find_profile("com.ex.app.adhoc", DistributionChannel.ADHOC).uuid == "ADHOC"
    assert store.find_profile("com.ex.app", DistributionChannel.ADHOC) is None

    # A newer development profile for the same id is never picked
    (development,) = [p for p in store.list_profiles() if p.uuid == "DEV"]
    assert development.channel is None


def test_produce_arguments(commands):
    service = FastlaneSigningService(fastlane_bin="/opt/fastlane")
    service.produce(
        AppRecordRequest(
            app_identifier="com.ex.app.adhoc",
            app_name="ExampleBrand",
            sku="ExampleBrandMobile",
            team_name="Example Team",
            skip_itc=True,
        )
    )

    (cmd,) = commands
    assert cmd[:2] == ["/opt/fastlane", "produce"]
    assert cmd[cmd.index("--app_identifier") + 1] == "com.ex.app.adhoc"
    assert cmd[cmd.index("--sku") + 1] == "ExampleBrandMobile"
    assert cmd[cmd.index("--language") + 1] == "English"
    assert cmd[cmd.index("--app_version") + 1] == "1.0"
    assert cmd[cmd.index("--team_name") + 1] == "Example Team"
    assert "--skip_itc" in cmd


def test_fetch_signing_materials_returns_installed_profile(commands, profile_dir, monkeypatch):
    monkeypatch.setenv("sigh_com.ex.app_appstore", "stale")
    service = FastlaneSigningService(profile_dir=profile_dir)

    materials = service.fetch_signing_materials(
        SigningMaterialsRequest(app_identifier="com.ex.app", type="appstore")
    )

    assert commands == [["fastlane", "match", "appstore", "--app_identifier", "com.ex.app"]]
    assert materials.profile_name == "match_AppStore_comexapp"
    assert os.environ["sigh_com.ex.app_appstore"] == "match_AppStore_comexapp"

    resolver = ProvisioningResolver(profile_dir)
    assert resolver.resolve("com.ex.app", DistributionChannel.APPSTORE, materials).exists()
    assert resolver.resolve("com.ex.app", DistributionChannel.APPSTORE).exists()


def test_fetch_signing_materials_without_installed_profile(commands, tmp_path):
    service = FastlaneSigningService(profile_dir=tmp_path / "empty")

    materials = service.fetch_signing_materials(
        SigningMaterialsRequest(app_identifier="com.ex.app.adhoc", type="adhoc", force=True)
    )

    assert commands[0][-1] == "--force"
    assert materials.profile_name is None


def test_resign_maps_each_bundle_to_its_profile(commands, tmp_path):
    profile = tmp_path / "NEW.mobileprovision"
    FastlaneSigningService().resign(
        ResignRequest(
            ipa=tmp_path / "ExampleBrand.ipa",
            signing_identity="Apple Distribution: Example",
            provisioning_profiles={"com.ex.app": profile},
        )
    )

    assert commands == [
        [
            "fastlane",
            "sigh",
            "resign",
            str(tmp_path / "ExampleBrand.ipa"),
            "--signing_identity",
            "Apple Distribution: Example",
            "--provisioning_profile",
            f"com.ex.app={profile}",
        ]
    ]


def test_run_process_surfaces_command_and_status():
    with pytest.raises(ExternalToolError) as excinfo:
        run_process("sh", "-c", "echo boom >&2; exit 3")

    assert excinfo.value.returncode == 3
    assert excinfo.value.command == ["sh", "-c", "echo boom >&2; exit 3"]
    assert "boom" in str(excinfo.value)


def test_run_process_missing_binary():
    with pytest.raises(ExternalToolError) as excinfo:
        run_process("definitely-not-a-real-tool-xyz")

    assert excinfo.value.returncode is None
    assert "definitely-not-a-real-tool-xyz is not installed" in str(excinfo.value)
    assert "status" not in str(excinfo.value)
