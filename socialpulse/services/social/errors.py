# socialpulse/services/social/errors.py

from ...constants.service_code import HTTP_STATUS_CODES


class SocialAccountError(Exception):
    """Base class for failures the connect/sync engine reports to its caller."""

    code = "social_account_error"
    status_code = HTTP_STATUS_CODES["INTERNAL_SERVER_ERROR"]

    def __init__(self, message=None):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidState(SocialAccountError):
    """The PKCE verifier for this `state` is unknown, expired or already consumed."""

    code = "invalid_state"
    status_code = HTTP_STATUS_CODES["BAD_REQUEST"]


class TokenExchangeError(SocialAccountError):
    """The provider rejected the authorization code, or the exchange call failed."""

    code = "token_exchange_failed"
    status_code = HTTP_STATUS_CODES["BAD_GATEWAY"]

    def __init__(self, message=None, platform=None, status=None):
        super().__init__(message)
        self.platform = platform
        self.status = status


class Unauthorized(SocialAccountError):
    code = "unauthorized"
    status_code = HTTP_STATUS_CODES["FORBIDDEN"]


class NotFound(SocialAccountError):
    code = "not_found"
    status_code = HTTP_STATUS_CODES["NOT_FOUND"]


class UnsupportedPlatform(SocialAccountError):
    code = "unsupported_platform"
    status_code = HTTP_STATUS_CODES["BAD_REQUEST"]


class SyncDegraded(SocialAccountError):
    """
    A provider metrics call failed. Raised inside adapters only and caught at
    the sync_metrics boundary, where it turns into zeroed metrics.
    """

    code = "sync_degraded"
