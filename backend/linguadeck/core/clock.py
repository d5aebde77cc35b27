from datetime import datetime, timezone


def utcnow() -> datetime:
    """Aware UTC now; every stored timestamp carries tzinfo."""
    return datetime.now(timezone.utc)
