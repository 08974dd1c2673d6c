"""Repository path conventions for published content."""

import re
from dataclasses import dataclass
from datetime import UTC, datetime

_UNSAFE_CHARS = re.compile(r"[^a-z0-9._-]+")
_DASH_RUNS = re.compile(r"-{2,}")
_DATA_URI = re.compile(r"^data:(?P<mime>image/[a-z0-9.+-]+);base64,(?P<data>.+)$", re.IGNORECASE | re.DOTALL)


@dataclass
class DataUri:
    """An inline base64 image."""

    mime_type: str
    data: str


def sanitize_filename(name: str) -> str:
    """Reduce ``name`` to a lowercase, path-safe filename component.

    Path separators and anything outside ``[a-z0-9._-]`` become dashes and
    leading dots are dropped, so the result can never escape its directory.
    """
    cleaned = _UNSAFE_CHARS.sub("-", name.strip().lower())
    cleaned = _DASH_RUNS.sub("-", cleaned).strip("-.")
    return cleaned


def slugify(slug: str) -> str:
    """The slug a post is stored and referenced under.

    Raises:
        ValueError: If nothing usable remains of the slug
    """
    safe_slug = sanitize_filename(slug)
    if not safe_slug:
        raise ValueError(f"Invalid slug: {slug!r}")
    return safe_slug


def post_path(slug: str, posts_dir: str = "_posts") -> str:
    """Path of the Markdown file for ``slug``.

    Raises:
        ValueError: If nothing usable remains of the slug
    """
    return f"{posts_dir.strip('/')}/{slugify(slug)}.md"


def image_path(
    slug: str,
    extension: str = "webp",
    images_dir: str = "images",
    now: datetime | None = None,
) -> str:
    """Timestamp-prefixed, sanitized path for a post's uploaded image."""
    timestamp = (now or datetime.now(UTC)).strftime("%Y%m%d%H%M%S")
    stem = sanitize_filename(slug) or "image"
    ext = sanitize_filename(extension) or "bin"
    return f"{images_dir.strip('/')}/{timestamp}-{stem}.{ext}"


def parse_data_uri(value: str) -> DataUri | None:
    """Parse a ``data:image/...;base64,`` URI; None for anything else."""
    match = _DATA_URI.match(value.strip())
    if not match:
        return None
    return DataUri(mime_type=match["mime"].lower(), data="".join(match["data"].split()))
