import re
import secrets

SLUG_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def generate_slug(length: int = 8) -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


def is_valid_slug(value: str, length: int = 8) -> bool:
    return bool(re.fullmatch(rf"[a-z0-9]{{{length}}}", value))


def format_file_size(size: int) -> str:
    """Human readable size, e.g. ``25 MB`` or ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    i = 0
    while i < len(_SIZE_UNITS) - 1 and size >= 1024 ** (i + 1):
        i += 1
    value = round(size / 1024 ** i, 2)
    return f"{value:g} {_SIZE_UNITS[i]}"
