import os
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import List, Optional, Union

from rebrand.logger import get_console
from rebrand.src.core.errors import BundleNotFoundError, ExternalToolError


def extract_archive(archive_path: Path, destination: Path) -> None:
    """Unzip an archive into destination, restoring unix permissions"""
    try:
        with zipfile.ZipFile(archive_path) as zf:
            for info in zf.infolist():
                extracted = zf.extract(info, destination)
                mode = (info.external_attr >> 16) & 0o7777
                if mode:
                    os.chmod(extracted, mode)
    except (zipfile.BadZipFile, OSError) as e:
        raise ExternalToolError(("unzip", str(archive_path)), None, str(e)) from e

    # Finder-made zips carry resource forks we never want to repackage
    macosx = destination / "__MACOSX"
    if macosx.is_dir():
        shutil.rmtree(macosx)


def compress_directory(source_dir: Path, archive_path: Path) -> Path:
    """Zip the contents of source_dir into archive_path, replacing any existing file"""
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    base_name = archive_path.parent / f"{archive_path.name}.partial"
    try:
        built = shutil.make_archive(str(base_name), "zip", root_dir=source_dir)
        os.replace(built, archive_path)
    except OSError as e:
        raise ExternalToolError(("zip", str(archive_path)), None, str(e)) from e
    return archive_path


def find_single(root: Path, pattern: str) -> Path:
    """Return the only path under root matching pattern"""
    matches: List[Path] = sorted(root.glob(pattern))
    if len(matches) != 1:
        raise BundleNotFoundError(str(root / pattern), matches)
    return matches[0]


class WorkingExtraction:
    """Temporary directory holding one extracted archive.

    The directory exists only inside the ``with`` block and is removed on
    every exit path, including a failed extraction.
    """

    def __init__(self, archive_path: Union[str, Path], prefix: str = "rebrand_"):
        self.archive_path = Path(archive_path)
        self.prefix = prefix
        self.root: Optional[Path] = None
        self._temp_dir: Optional[tempfile.TemporaryDirectory] = None
        self.console = get_console()

    def __enter__(self) -> "WorkingExtraction":
        self._temp_dir = tempfile.TemporaryDirectory(prefix=self.prefix)
        self.root = Path(self._temp_dir.name)
        self.console.log(f"[blue]Extracting[/] {self.archive_path.name} -> {self.root}")
        try:
            extract_archive(self.archive_path, self.root)
        except BaseException:
            self._cleanup()
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._cleanup()

    def _cleanup(self) -> None:
        if self._temp_dir is not None:
            self._temp_dir.cleanup()
            self._temp_dir = None

    def repackage(self, archive_path: Path) -> Path:
        """Zip the whole working directory into a new archive outside it"""
        if self.root is None:
            raise RuntimeError("WorkingExtraction used outside its with block")
        compress_directory(self.root, archive_path)
        self.console.log(f"[green]Created archive:[/] {archive_path}")
        return archive_path
