"""String helpers for comma-separated parameters."""


def split_and_trim(value: str | None) -> list[str]:
    """Split a comma-separated string, trimming items and dropping empty ones.

    >>> split_and_trim(" DEV, ,TEAM ")
    ['DEV', 'TEAM']
    """
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]
