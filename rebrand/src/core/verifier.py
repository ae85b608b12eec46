from pathlib import Path
from typing import Dict, Mapping, Union

from rebrand.logger import get_console
from rebrand.src.core.errors import MissingInputError


def normalize_path(path: Union[str, Path]) -> Path:
    """Expand ~ and make a path absolute"""
    return Path(path).expanduser().resolve()


def verify_file(name: str, path: Union[str, Path]) -> Path:
    """Confirm a single required path exists and return its normalized form"""
    resolved = normalize_path(path)
    if not resolved.exists():
        raise MissingInputError(name, resolved)
    get_console().log(f"[green]{resolved}[/] file verified")
    return resolved


def verify_inputs(paths: Mapping[str, Union[str, Path]]) -> Dict[str, Path]:
    """Verify every required input before anything is extracted or modified.

    Stops at the first missing path. Returns the normalized paths keyed the
    same way as the input mapping.
    """
    return {name: verify_file(name, path) for name, path in paths.items()}
