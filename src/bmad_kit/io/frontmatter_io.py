"""Frontmatter reading for installed component descriptors."""

from pathlib import Path

import frontmatter
import yaml


def read_frontmatter(path: Path) -> dict[str, object]:
    """Return the YAML frontmatter of a markdown file.

    Files without frontmatter yield an empty dict.

    Raises:
        ValueError: If the frontmatter block is not valid YAML
    """
    content = path.read_text(encoding="utf-8")
    try:
        post = frontmatter.loads(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid frontmatter in {path}: {e}") from e
    return dict(post.metadata)


def render_with_frontmatter(metadata: dict[str, object], body: str) -> str:
    """Render body behind a frontmatter block, keys in insertion order."""
    post = frontmatter.Post(body, **metadata)
    return frontmatter.dumps(post, sort_keys=False) + "\n"
