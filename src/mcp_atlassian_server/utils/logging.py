"""Logging helpers that keep credentials out of log output."""


def mask_sensitive(value: str | None, keep_chars: int = 4) -> str:
    """Mask a secret, keeping only a few characters at each end.

    Args:
        value: The secret to mask.
        keep_chars: Number of characters to keep visible at start and end.

    Returns:
        The masked value, or "Not Provided" for empty input.
    """
    if not value:
        return "Not Provided"
    if len(value) <= keep_chars * 2:
        return "*" * len(value)
    hidden = "*" * (len(value) - keep_chars * 2)
    return f"{value[:keep_chars]}{hidden}{value[-keep_chars:]}"
