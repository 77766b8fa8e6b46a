"""
Shared validation and normalization helpers for tag names, tag paths and URLs.

Used by both the schemas and the service layer so that the same rules apply
to client input, AI output and stored data.
"""
from urllib.parse import urlparse

TAG_PATH_SEPARATOR = "/"
# Column widths of tags.name and tags.path / bookmark_tag_paths.tag_path
MAX_TAG_NAME_LENGTH = 100
MAX_TAG_PATH_LENGTH = 500


def clean_tag_name(name: str) -> str:
    """Strip a single leading '#' and surrounding whitespace from a tag name."""
    cleaned = name.strip()
    if cleaned.startswith("#"):
        cleaned = cleaned[1:]
    return cleaned.strip()


def split_tag_path(path: str) -> list[str]:
    """Split a tag path into trimmed, non-empty segments."""
    return [part.strip() for part in path.split(TAG_PATH_SEPARATOR) if part.strip()]


def normalize_tag_path(path: str) -> str:
    """
    Normalize a tag path string.

    "#Backend / API/" -> "Backend/API". Returns an empty string if nothing is left.
    """
    return TAG_PATH_SEPARATOR.join(split_tag_path(clean_tag_name(path)))


def is_hierarchical(value: str) -> bool:
    """True if the name or path contains the path separator."""
    return TAG_PATH_SEPARATOR in value


def is_absolute_url(url: str) -> bool:
    """
    Check that `url` parses as an absolute URL (has a scheme and a host part).

    No normalization is applied; the caller stores the URL exactly as given.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if not parsed.scheme or not parsed.netloc:
        return False
    return " " not in url
