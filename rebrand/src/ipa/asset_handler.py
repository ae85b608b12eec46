import shutil
from pathlib import Path
from typing import List

from PIL import Image

from rebrand.logger import get_console

APP_ICON_GLOB = "AppIcon*.png"


class AssetHandler:
    """Copies brand asset and localization trees into an app bundle"""

    def __init__(self):
        self.console = get_console()

    def copy_tree(self, source_dir: Path, bundle_dir: Path) -> List[Path]:
        """Merge the contents of source_dir into bundle_dir, overwriting on conflict"""
        copied = [p for p in source_dir.rglob("*") if p.is_file()]
        shutil.copytree(source_dir, bundle_dir, dirs_exist_ok=True)
        self.console.log(
            f"[green]Copied {len(copied)} file(s) from[/] {source_dir} [green]into[/] {bundle_dir.name}"
        )
        return [bundle_dir / p.relative_to(source_dir) for p in copied]

    @staticmethod
    def has_alpha(img: Image.Image) -> bool:
        return img.mode in ("RGBA", "LA") or (
            img.mode == "P" and "transparency" in img.info
        )

    def flatten_app_icons(self, bundle_dir: Path) -> List[Path]:
        """Composite transparent app icons onto white.

        App Store Connect rejects app icons that carry an alpha channel.
        """
        flattened = []
        for icon_path in sorted(bundle_dir.glob(APP_ICON_GLOB)):
            try:
                with Image.open(icon_path) as img:
                    if not self.has_alpha(img):
                        continue
                    rgba = img.convert("RGBA")
            except OSError as e:
                # Xcode-optimized (CgBI) PNGs aren't readable by Pillow
                self.console.log(f"[yellow]Leaving {icon_path.name} untouched: {e}[/]")
                continue

            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[-1])
            background.save(icon_path, "PNG")
            flattened.append(icon_path)
            self.console.log(f"[yellow]Stripped alpha channel from[/] {icon_path.name}")

        return flattened
