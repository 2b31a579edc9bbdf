from enum import Enum

from ...services.social.errors import UnsupportedPlatform


class Platform(str, Enum):
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    LINKEDIN = "linkedin"
    SNAPCHAT = "snapchat"
    TIKTOK = "tiktok"
    TWITTER = "twitter"
    YOUTUBE = "youtube"

    @classmethod
    def parse(cls, value) -> "Platform":
        """
        Case-insensitive lookup. "x" is accepted for Twitter since that is
        what the provider now calls itself in redirect paths.
        """
        if isinstance(value, cls):
            return value

        key = str(value or "").strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise UnsupportedPlatform(f"Unsupported platform: {value}") from None

    def __str__(self):
        return self.value


_ALIASES = {
    "x": "twitter",
}
