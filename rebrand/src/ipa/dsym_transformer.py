from pathlib import Path
from typing import Optional

from rebrand.logger import get_console, log_stage
from rebrand.src.core.identity import DistributionChannel, dsym_bundle_id
from rebrand.src.ipa.app_transformer import set_app_version
from rebrand.src.ipa.archive import WorkingExtraction, find_single
from rebrand.src.ipa.plist_mutator import PlistMutator
from rebrand.src.utils.config_loader import BrandConfig

DSYM_PLIST_GLOB = "*.app.dSYM/Contents/Info.plist"


class DebugSymbolTransformer:
    """Rewrites the identity of a zipped .app.dSYM to match its branded app"""

    def __init__(
        self, output_dir: Optional[Path] = None, mutator: Optional[PlistMutator] = None
    ):
        self.output_dir = Path(output_dir or Path.cwd()).expanduser().resolve()
        self.mutator = mutator or PlistMutator()
        self.console = get_console()

    def transform(
        self,
        dsym_path: Path,
        config: BrandConfig,
        channel: DistributionChannel,
        app_version: Optional[str] = None,
    ) -> Path:
        log_stage(f"Applying {config.basename} dSYM branding")

        with WorkingExtraction(dsym_path, prefix="rebrand_dsym_") as work:
            bundle_id = dsym_bundle_id(config, channel)
            plist_path = find_single(work.root, DSYM_PLIST_GLOB)

            self.mutator.set_value(plist_path, "CFBundleIdentifier", bundle_id)
            set_app_version(self.mutator, plist_path, app_version)

            archive_path = work.repackage(
                self.output_dir / f"{config.basename}.app.dSYM.zip"
            )

        self.console.log(f"[bold green]Branded dSYM:[/] {archive_path}")
        return archive_path
