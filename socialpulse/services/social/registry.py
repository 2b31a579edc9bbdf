# socialpulse/services/social/registry.py
from typing import Dict, Iterator, Mapping

from .errors import UnsupportedPlatform
from .providers.base import DEFAULT_TIMEOUT_SECONDS, SocialProviderBase
from .providers.facebook_provider import FacebookProvider
from .providers.instagram_provider import InstagramProvider
from .providers.linkedin_provider import LinkedInProvider
from .providers.snapchat_provider import SnapchatProvider
from .providers.tiktok_provider import TikTokProvider
from .providers.x_provider import XProvider
from .providers.youtube_provider import YouTubeProvider
from ...models.social.platform import Platform

PROVIDERS = {
    Platform.FACEBOOK: FacebookProvider,
    Platform.INSTAGRAM: InstagramProvider,
    Platform.LINKEDIN: LinkedInProvider,
    Platform.SNAPCHAT: SnapchatProvider,
    Platform.TIKTOK: TikTokProvider,
    Platform.TWITTER: XProvider,
    Platform.YOUTUBE: YouTubeProvider,
}


class ProviderRegistry:
    """Platform -> adapter instance, filled once at startup."""

    def __init__(self):
        self._adapters: Dict[Platform, SocialProviderBase] = {}

    def register(self, platform, adapter: SocialProviderBase) -> None:
        self._adapters[Platform.parse(platform)] = adapter

    def get(self, platform) -> SocialProviderBase:
        key = Platform.parse(platform)
        adapter = self._adapters.get(key)
        if adapter is None:
            raise UnsupportedPlatform(f"Unsupported platform: {platform}")
        return adapter

    def __contains__(self, platform) -> bool:
        try:
            return Platform.parse(platform) in self._adapters
        except UnsupportedPlatform:
            return False

    def __iter__(self) -> Iterator[Platform]:
        return iter(self._adapters)


def build_provider_registry(config: Mapping, verifier_store) -> ProviderRegistry:
    """
    One adapter per platform, configured from <PLATFORM>_CLIENT_ID,
    <PLATFORM>_CLIENT_SECRET, <PLATFORM>_REDIRECT_URI and <PLATFORM>_SCOPE.
    """
    timeout = int(config.get("PROVIDER_HTTP_TIMEOUT_SECONDS") or DEFAULT_TIMEOUT_SECONDS)
    registry = ProviderRegistry()

    for platform, cls in PROVIDERS.items():
        prefix = platform.value.upper()
        registry.register(
            platform,
            cls(
                client_id=config.get(f"{prefix}_CLIENT_ID"),
                client_secret=config.get(f"{prefix}_CLIENT_SECRET"),
                redirect_uri=config.get(f"{prefix}_REDIRECT_URI"),
                scope=config.get(f"{prefix}_SCOPE"),
                verifier_store=verifier_store,
                timeout=timeout,
            ),
        )

    return registry
