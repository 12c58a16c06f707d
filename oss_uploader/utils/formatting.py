"""
Small string helpers shared by the uploader, manifest writer and CLI.
"""

SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]

# Longest filename shown next to the progress bar
MAX_DISPLAY_NAME_LENGTH = 40


def format_bytes(num_bytes: int) -> str:
    """
    Format a byte count as a human-readable string.

    Values are rounded to two decimals and trailing zeros are dropped.

    Example:
        >>> format_bytes(0)
        '0 Bytes'
        >>> format_bytes(1536)
        '1.5 KB'
    """
    if num_bytes <= 0:
        return "0 Bytes"

    value = float(num_bytes)
    exponent = 0
    while value >= 1024 and exponent < len(SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1

    text = f"{round(value, 2):.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[exponent]}"


def normalize_path(path: str) -> str:
    """Convert Windows separators to forward slashes."""
    return path.replace("\\", "/")


def truncate_filename(name: str, max_length: int = MAX_DISPLAY_NAME_LENGTH) -> str:
    """
    Shorten long names for display, keeping the tail (extension included).

    Example:
        >>> truncate_filename("a" * 50 + ".txt")[-8:]
        'aaaa.txt'
    """
    if len(name) <= max_length:
        return name
    return "..." + name[-(max_length - 3):]
