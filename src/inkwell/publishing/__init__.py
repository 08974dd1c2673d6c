"""Content publishing workflow."""

from inkwell.publishing.images import compress_to_webp
from inkwell.publishing.markdown import render_post
from inkwell.publishing.paths import image_path, parse_data_uri, post_path, sanitize_filename, slugify
from inkwell.publishing.service import PostDraft, PublishResult, PublishService

__all__ = [
    "PostDraft",
    "PublishResult",
    "PublishService",
    "compress_to_webp",
    "image_path",
    "parse_data_uri",
    "post_path",
    "render_post",
    "sanitize_filename",
    "slugify",
]
