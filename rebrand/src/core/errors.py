from pathlib import Path
from typing import Optional, Sequence


class RebrandError(Exception):
    """Base class for every failure that aborts a branding run"""


class MissingInputError(RebrandError):
    """A required input path does not exist"""

    def __init__(self, name: str, path: Path):
        self.name = name
        self.path = path
        super().__init__(f"{path} does not exist (required input: {name})")


class ConfigParseError(RebrandError):
    """The brand configuration file is not valid structured data"""


class ConfigValidationError(ConfigParseError):
    """The brand configuration parsed but is missing required keys"""


class BundleNotFoundError(RebrandError):
    """Zero or several candidate bundles were found in an extracted archive"""

    def __init__(self, pattern: str, matches: Sequence[Path]):
        self.pattern = pattern
        self.matches = list(matches)
        if not self.matches:
            message = f"No bundle matching {pattern}"
        else:
            found = ", ".join(str(m) for m in self.matches)
            message = f"Expected exactly one bundle matching {pattern}, found {len(self.matches)}: {found}"
        super().__init__(message)


class ExternalToolError(RebrandError):
    """An external process or conversion step failed"""

    def __init__(self, command: Sequence[str], returncode: Optional[int], output: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        if returncode is None:
            # In-process steps and commands that never started have no exit status
            message = f"{' '.join(self.command)} failed"
        else:
            message = f"Command failed with status {returncode}: {' '.join(self.command)}"
        if output:
            message += f"\n{output}"
        super().__init__(message)


class ProvisioningNotFoundError(RebrandError):
    """No provisioning profile name could be found for an identifier"""

    def __init__(self, env_key: str, profile_dir: Optional[Path] = None):
        self.env_key = env_key
        self.profile_dir = profile_dir
        message = f"No provisioning profile registered under {env_key}"
        if profile_dir:
            message += f" (profile directory: {profile_dir})"
        super().__init__(message)
