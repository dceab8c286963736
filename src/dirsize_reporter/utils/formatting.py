"""Pure formatting helpers for human-readable log output."""

_UNITS = ("KiB", "MiB", "GiB", "TiB", "PiB")

_MINUTE = 60
_HOUR = _MINUTE * 60


def format_size(num_bytes: int, *, precision: int = 1) -> str:
    """Convert a byte count to a binary-unit string.

    Examples:
        >>> format_size(512)
        '512 B'
        >>> format_size(1536)
        '1.5 KiB'
        >>> format_size(10737418240)
        '10.0 GiB'
    """
    if num_bytes < 0:
        msg = "num_bytes must be non-negative"
        raise ValueError(msg)

    if num_bytes < 1024:
        return f"{num_bytes} B"

    value = float(num_bytes)
    unit = _UNITS[0]
    for unit in _UNITS:
        value /= 1024.0
        if value < 1024.0:
            break
    return f"{value:.{precision}f} {unit}"


def format_interval(seconds: float) -> str:
    """Render a reporting interval the way it is usually written in config.

    Examples:
        >>> format_interval(10)
        '10s'
        >>> format_interval(90)
        '1m30s'
        >>> format_interval(0.5)
        '500ms'
        >>> format_interval(3600)
        '1h'
    """
    if seconds < 0:
        msg = "seconds must be non-negative"
        raise ValueError(msg)

    if seconds < 1:
        return f"{round(seconds * 1000)}ms"

    whole = int(seconds)
    fraction = seconds - whole
    hours, remainder = divmod(whole, _HOUR)
    minutes, secs = divmod(remainder, _MINUTE)

    parts: list[str] = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or fraction:
        parts.append(f"{secs + fraction:g}s")
    return "".join(parts)
