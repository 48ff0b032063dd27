# RepoSync URI Utilities
# Normalization and hierarchy helpers for resource URIs

from pathlib import Path
from urllib.parse import quote, unquote, urlsplit


def normalize_uri(uri: str) -> str:
    """
    Normalize a resource URI.

    A trailing slash is not significant, so it is removed everywhere except
    directly after the authority (``memory://repo/`` stays as is).

    Args:
        uri: Absolute resource URI.

    Returns:
        Normalized URI string.
    """
    parts = urlsplit(uri)
    if parts.path in ("", "/"):
        return f"{parts.scheme}://{parts.netloc}/"
    return uri.rstrip("/")


def is_absolute_uri(uri: str) -> bool:
    """Check whether a string is an absolute URI (has a scheme)."""
    parts = urlsplit(uri)
    return bool(parts.scheme) and len(parts.scheme) > 1


def child_uri(parent_uri: str, name: str) -> str:
    """Resolve a child name against a parent resource URI."""
    return normalize_uri(parent_uri).rstrip("/") + "/" + quote(name, safe="")


def uri_name(uri: str) -> str:
    """Get the decoded last path segment of a URI."""
    path = urlsplit(normalize_uri(uri)).path
    return unquote(path.rstrip("/").rsplit("/", 1)[-1])


def parent_uri(uri: str) -> str | None:
    """Get the parent URI, or None for a root URI."""
    normalized = normalize_uri(uri)
    parts = urlsplit(normalized)
    if parts.path in ("", "/"):
        return None
    return normalize_uri(normalized.rsplit("/", 1)[0] + "/")


def is_within(uri: str, base_uri: str) -> bool:
    """
    Check whether a URI equals or lies beneath a base URI.

    Args:
        uri: URI to test.
        base_uri: Base (collection) URI.

    Returns:
        True if ``uri`` is ``base_uri`` or one of its descendants.
    """
    uri = normalize_uri(uri)
    base = normalize_uri(base_uri)
    if uri == base:
        return True
    return uri.startswith(base.rstrip("/") + "/")


def relative_path(uri: str, base_uri: str) -> list[str]:
    """
    Get the decoded path segments of ``uri`` relative to ``base_uri``.

    Raises:
        ValueError: If ``uri`` does not lie within ``base_uri``.
    """
    if not is_within(uri, base_uri):
        raise ValueError(f"{uri} is not within {base_uri}")
    base = normalize_uri(base_uri).rstrip("/")
    rest = normalize_uri(uri)[len(base) :].strip("/")
    if not rest:
        return []
    return [unquote(segment) for segment in rest.split("/")]


def guess_absolute_uri(value: str) -> str:
    """
    Interpret a command-line value as a URI.

    Absolute URIs are returned normalized; anything else is treated as a
    filesystem path and converted to a ``file:`` URI.

    Args:
        value: URI or filesystem path.

    Returns:
        Absolute, normalized URI.
    """
    if is_absolute_uri(value):
        return normalize_uri(value)
    path = Path(value).expanduser().resolve()
    return normalize_uri(path.as_uri())
