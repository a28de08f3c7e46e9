"""Object key construction shared by the object-storage uploaders."""

import time

PROBE_KEY_PREFIX = "_test_"


def current_millis() -> int:
    return time.time_ns() // 1_000_000


def strip_trailing_slash(value: str) -> str:
    """Drop one trailing ``/``, if present."""
    return value[:-1] if value.endswith("/") else value


def build_object_key(filename: str, path_prefix: str | None = None, *, now_ms: int | None = None) -> str:
    """Build ``[<prefix>/]<millis>_<filename>``.

    Example:
        >>> build_object_key("a.png", "images/", now_ms=1700000000000)
        'images/1700000000000_a.png'
    """
    millis = current_millis() if now_ms is None else now_ms
    name = f"{millis}_{filename}"
    if path_prefix:
        return f"{strip_trailing_slash(path_prefix)}/{name}"
    return name


def build_probe_key(*, now_ms: int | None = None) -> str:
    """Key for the throwaway object written by connection tests."""
    millis = current_millis() if now_ms is None else now_ms
    return f"{PROBE_KEY_PREFIX}{millis}.txt"
