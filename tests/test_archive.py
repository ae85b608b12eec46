import zipfile

import pytest

from rebrand.src.core.errors import BundleNotFoundError, ExternalToolError
from rebrand.src.ipa.archive import WorkingExtraction, compress_directory, find_single
from tests.conftest import write_zip


def test_extraction_is_removed_after_success(tmp_path, scratch_dir):
    archive = write_zip(tmp_path / "a.zip", {"Payload/App.app/file": b"data"})

    with WorkingExtraction(archive) as work:
        root = work.root
        assert (root / "Payload" / "App.app" / "file").read_bytes() == b"data"
        assert root.parent == scratch_dir

    assert not root.exists()
    assert list(scratch_dir.iterdir()) == []


def test_extraction_is_removed_after_failure(tmp_path, scratch_dir):
    archive = write_zip(tmp_path / "a.zip", {"Payload/App.app/file": b"data"})

    with pytest.raises(RuntimeError):
        with WorkingExtraction(archive) as work:
            root = work.root
            raise RuntimeError("forced failure")

    assert not root.exists()
    assert list(scratch_dir.iterdir()) == []


def test_corrupt_archive_raises_and_cleans_up(tmp_path, scratch_dir):
    archive = tmp_path / "broken.ipa"
    archive.write_bytes(b"this is not a zip")

    with pytest.raises(ExternalToolError) as excinfo:
        with WorkingExtraction(archive):
            pass

    assert excinfo.value.command == ["unzip", str(archive)]
    assert list(scratch_dir.iterdir()) == []


def test_finder_metadata_is_dropped(tmp_path):
    archive = write_zip(
        tmp_path / "a.zip",
        {"Payload/App.app/file": b"data", "__MACOSX/Payload/._file": b"fork"},
    )

    with WorkingExtraction(archive) as work:
        assert not (work.root / "__MACOSX").exists()


def test_repackage_preserves_layout_and_modes(tmp_path):
    archive = write_zip(
        tmp_path / "a.zip",
        {"Payload/App.app/App": (b"binary", 0o755), "Payload/App.app/Info.plist": b"plist"},
    )
    destination = tmp_path / "out" / "Brand.ipa"

    with WorkingExtraction(archive) as work:
        work.repackage(destination)

    with zipfile.ZipFile(destination) as zf:
        names = set(zf.namelist())
        assert "Payload/App.app/App" in names
        assert "Payload/App.app/Info.plist" in names
        assert (zf.getinfo("Payload/App.app/App").external_attr >> 16) & 0o777 == 0o755
    assert not (tmp_path / "out" / "Brand.ipa.partial.zip").exists()


def test_compress_directory_overwrites(tmp_path):
    source = tmp_path / "src"
    source.mkdir()
    (source / "a.txt").write_text("new")
    destination = tmp_path / "Brand.app.dSYM.zip"
    destination.write_bytes(b"stale")

    compress_directory(source, destination)

    with zipfile.ZipFile(destination) as zf:
        assert zf.read("a.txt") == b"new"


def test_find_single(tmp_path):
    (tmp_path / "Payload" / "One.app").mkdir(parents=True)
    assert find_single(tmp_path, "Payload/*.app") == tmp_path / "Payload" / "One.app"

    (tmp_path / "Payload" / "Two.app").mkdir()
    with pytest.raises(BundleNotFoundError) as excinfo:
        find_single(tmp_path, "Payload/*.app")
    assert len(excinfo.value.matches) == 2

    with pytest.raises(BundleNotFoundError) as excinfo:
        find_single(tmp_path, "*.app.dSYM/Contents/Info.plist")
    assert excinfo.value.matches == []
    assert "*.app.dSYM/Contents/Info.plist" in excinfo.value.pattern
