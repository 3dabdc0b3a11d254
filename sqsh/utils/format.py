# ============================================================================
# Utility Functions
# ============================================================================

import re


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable size."""
    size = float(size_bytes)
    sign = "-" if size < 0 else ""
    size = abs(size)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size < 1024.0:
            return f"{sign}{size:.2f} {unit}"
        size /= 1024.0
    return f"{sign}{size:.2f} PB"


def format_duration(seconds: float) -> str:
    """Format seconds as '42s' or '3m 05s'."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    if minutes > 0:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"


def parse_size(size_str: str) -> int:
    """
    Parse a size string to bytes.

    Supports formats like:
    - "1MB", "500MB", "1.5GB", "2TB"
    - "1024B", "1.5K", "10 mb"
    - A bare number is taken as bytes

    Args:
        size_str: Size string to parse (e.g., "10MB", "1.5GB")

    Returns:
        Size in bytes as integer

    Raises:
        ValueError: If size string format is invalid or size is not positive
    """
    if not size_str or not isinstance(size_str, str):
        raise ValueError(f"Invalid size string: {size_str}")

    size_str = size_str.strip().upper()

    match = re.match(r"^(\d+(?:\.\d+)?)\s*([KMGT]?B?)$", size_str)
    if not match:
        raise ValueError(f"Invalid size format: {size_str}. Expected format like '10MB', '1.5GB', '500KB'")

    value = float(match.group(1))
    unit = match.group(2) or "B"

    units = {
        "B": 1,
        "K": 1024,
        "KB": 1024,
        "M": 1024**2,
        "MB": 1024**2,
        "G": 1024**3,
        "GB": 1024**3,
        "T": 1024**4,
        "TB": 1024**4,
    }

    size_bytes = int(value * units[unit])
    if size_bytes <= 0:
        raise ValueError(f"Size must be greater than zero: {size_str}")

    return size_bytes


def parse_timestamp(timestamp: str) -> float:
    """Convert an FFmpeg 'HH:MM:SS.xx' timestamp to seconds."""
    hours, minutes, seconds = timestamp.split(":")
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)
