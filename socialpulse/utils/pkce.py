# socialpulse/utils/pkce.py

import base64
import hashlib
import secrets


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def generate_code_verifier(num_bytes: int = 32) -> str:
    """
    RFC 7636 code_verifier: cryptographically random, base64url, no padding.
    32 bytes -> 43 characters, the minimum length the RFC allows.
    """
    if num_bytes < 32:
        raise ValueError("code_verifier needs at least 32 random bytes")
    return _b64url(secrets.token_bytes(num_bytes))


def code_challenge_for(code_verifier: str) -> str:
    """S256 challenge: BASE64URL(SHA256(ascii(code_verifier))), no padding."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return _b64url(digest)


def generate_state() -> str:
    """Random CSRF state for flows that do not carry a session token."""
    return secrets.token_urlsafe(32)
