from enum import Enum

from rebrand.src.utils.config_loader import BrandConfig

DSYM_NAMESPACE = "com.apple.xcode.dsym."


class DistributionChannel(Enum):
    ADHOC = "adhoc"  # Limited device testing
    APPSTORE = "appstore"  # Public store distribution

    @classmethod
    def from_flag(cls, ad_hoc: bool) -> "DistributionChannel":
        return cls.ADHOC if ad_hoc else cls.APPSTORE

    @property
    def bundle_id_suffix(self) -> str:
        return ".adhoc" if self is DistributionChannel.ADHOC else ""

    @property
    def skip_store_record(self) -> bool:
        return self is DistributionChannel.ADHOC

    @property
    def match_type(self) -> str:
        return self.value

    @property
    def profile_suffix(self) -> str:
        return self.value

    @property
    def force_renew(self) -> bool:
        return self is DistributionChannel.ADHOC


def effective_bundle_id(config: BrandConfig, channel: DistributionChannel) -> str:
    """Channel-adjusted identifier shared by every stage of one run"""
    return config.bundle_identifier + channel.bundle_id_suffix


def dsym_bundle_id(config: BrandConfig, channel: DistributionChannel) -> str:
    """Identifier written into the debug-symbol bundle's Info.plist"""
    return DSYM_NAMESPACE + config.bundle_identifier + channel.bundle_id_suffix
