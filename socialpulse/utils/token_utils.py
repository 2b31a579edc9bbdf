from datetime import datetime, timezone, timedelta


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_token_expiry(val):
    """
    Normalize token_expires_at into an aware datetime or None.
    Accepts:
      - datetime (naive values are taken as UTC, which is how pymongo returns them)
      - ISO string
      - unix timestamp (seconds)
    """
    if not val:
        return None

    if isinstance(val, datetime):
        return val if val.tzinfo else val.replace(tzinfo=timezone.utc)

    if isinstance(val, str):
        try:
            return parse_token_expiry(datetime.fromisoformat(val.replace("Z", "+00:00")))
        except ValueError:
            return None

    try:
        return datetime.fromtimestamp(float(val), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def expires_at_from(expires_in, now=None):
    """Turn a provider's relative `expires_in` (seconds) into an absolute expiry."""
    if expires_in in (None, ""):
        return None
    try:
        seconds = int(expires_in)
    except (TypeError, ValueError):
        return None
    return (now or utcnow()) + timedelta(seconds=seconds)


def is_token_expired(expires_at) -> bool:
    exp_dt = parse_token_expiry(expires_at)
    if not exp_dt:
        # No expiry recorded => treat as valid
        return False

    return exp_dt <= utcnow()
