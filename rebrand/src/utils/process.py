import subprocess
from pathlib import Path
from typing import Optional, Union

from rebrand.logger import get_console
from rebrand.src.core.errors import ExternalToolError


def decode_clean(output: Optional[str]) -> str:
    """Clean up command output"""
    return "" if not output else output.strip()


def run_process(
    *cmd: str, cwd: Optional[Union[str, Path]] = None, env: Optional[dict] = None
) -> subprocess.CompletedProcess:
    """Run a blocking process and raise ExternalToolError on a non-zero exit"""
    get_console().log(f"[dim]$ {' '.join(cmd)}[/]")
    try:
        return subprocess.run(
            cmd, capture_output=True, check=True, text=True, cwd=cwd, env=env
        )
    except subprocess.CalledProcessError as e:
        output = "\n".join(
            part for part in (decode_clean(e.stdout), decode_clean(e.stderr)) if part
        )
        raise ExternalToolError(cmd, e.returncode, output) from e
    except FileNotFoundError as e:
        raise ExternalToolError(cmd, None, f"{cmd[0]} is not installed") from e
