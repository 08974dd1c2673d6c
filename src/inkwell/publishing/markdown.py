"""Markdown rendering for published posts."""

import yaml


def render_post(title: str, slug: str, body: str, main_image: str | None = None) -> str:
    """Render a post as Markdown with YAML front matter."""
    front_matter = yaml.safe_dump(
        {"title": title, "slug": slug, "mainImage": main_image or ""},
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )
    return f"---\n{front_matter}---\n\n{body}"

