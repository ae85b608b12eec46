import json
import os
import plistlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import toml

from rebrand.src.core.errors import ConfigParseError, ConfigValidationError

BUNDLE_ID_KEY = "CFBundleIdentifier"
BASENAME_KEY = "basename"
BRAND_CONFIG_KEY = "BRAND_CONFIG"


@dataclass(frozen=True)
class BrandConfig:
    """Brand record loaded once per run and never modified afterwards"""

    bundle_identifier: str
    basename: str
    brand_config_payload: Any
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


def _require_string(data: Dict[str, Any], key: str, source: Path) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigValidationError(
            f"{source}: '{key}' must be a non-empty string, got {value!r}"
        )
    return value


def load_brand_config(config_path: Union[str, Path]) -> BrandConfig:
    """Parse and validate a brand configuration JSON file"""
    config_path = Path(config_path)
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigParseError(f"Failed to parse brand config {config_path}: {e}")

    if not isinstance(data, dict):
        raise ConfigParseError(
            f"Brand config {config_path} must be a JSON object, got {type(data).__name__}"
        )

    bundle_identifier = _require_string(data, BUNDLE_ID_KEY, config_path)
    basename = _require_string(data, BASENAME_KEY, config_path)

    # Property lists have no null type, so a missing or null payload can't be written
    if data.get(BRAND_CONFIG_KEY) is None:
        raise ConfigValidationError(
            f"{config_path}: '{BRAND_CONFIG_KEY}' is required and cannot be null"
        )

    # Nested nulls and out-of-range integers would only fail once Info.plist is written
    try:
        plistlib.dumps(data[BRAND_CONFIG_KEY])
    except (TypeError, OverflowError) as e:
        raise ConfigValidationError(
            f"{config_path}: '{BRAND_CONFIG_KEY}' cannot be stored in a property list: {e}"
        )

    return BrandConfig(
        bundle_identifier=bundle_identifier,
        basename=basename,
        brand_config_payload=data[BRAND_CONFIG_KEY],
        raw=data,
    )


def get_settings_path() -> Path:
    """Return the path to the user settings file."""
    env_path = os.environ.get("REBRAND_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".rebrand" / "config.toml"


def load_settings() -> Dict[str, Any]:
    """Load user settings from TOML file."""
    settings_path = get_settings_path()
    if not settings_path.exists():
        return {}

    try:
        return toml.load(settings_path)
    except toml.TomlDecodeError as e:
        raise ConfigParseError(f"Failed to load settings {settings_path}: {e}")


def get_signing_defaults() -> Dict[str, Optional[str]]:
    """Team name and signing identity from the [signing] section"""
    signing = load_settings().get("signing", {})
    return {
        "team_name": signing.get("team_name"),
        "signing_identity": signing.get("signing_identity"),
    }


def get_profile_dir() -> Optional[Path]:
    """Get provisioning profile directory from environment or settings."""
    env_profile_dir = os.environ.get("REBRAND_PROFILE_DIR")
    if env_profile_dir:
        return Path(env_profile_dir).expanduser()

    profile_dir = load_settings().get("paths", {}).get("profile_dir")
    if profile_dir:
        return Path(profile_dir).expanduser()

    return None


def get_output_dir() -> Path:
    """Get the directory branded artifacts are written to"""
    output_dir = load_settings().get("paths", {}).get("output_dir")
    return Path(output_dir).expanduser() if output_dir else Path.cwd()
