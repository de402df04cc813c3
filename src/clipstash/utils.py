from datetime import datetime, timezone

ELLIPSIS = "..."


def get_time() -> datetime:
    """
    Current time as a timezone-aware UTC datetime.

    Example:
        >>> get_time().tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive values are taken as UTC; aware values are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def truncate(text: str, width: int = 80) -> str:
    """
    Cut `text` to `width` characters, marking the cut with an ellipsis.

    Args:
        text (str): The text to shorten.
        width (int): Characters kept before the ellipsis.

    Returns:
        str: `text` unchanged when it fits, otherwise its first `width`
            characters followed by "...".

    Example:
        >>> truncate("abcdef", 3)
        'abc...'
        >>> truncate("abc", 3)
        'abc'
    """
    if len(text) > width:
        return text[:width] + ELLIPSIS
    return text
