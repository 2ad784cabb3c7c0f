"""I/O operations for bmad-kit."""

from bmad_kit.io.atomic import atomic_write, write_text_atomic
from bmad_kit.io.csv_io import read_csv, render_csv
from bmad_kit.io.definition import load_document, load_overlay
from bmad_kit.io.frontmatter_io import read_frontmatter
from bmad_kit.io.installation import (
    get_config_dir,
    load_installation_manifest,
    save_installation_manifest,
)

__all__ = [
    "atomic_write",
    "get_config_dir",
    "load_document",
    "load_installation_manifest",
    "load_overlay",
    "read_csv",
    "read_frontmatter",
    "render_csv",
    "save_installation_manifest",
    "write_text_atomic",
]
