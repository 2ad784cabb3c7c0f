"""Merging of per-module help catalogs into _cfg/bmad-help.csv."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from bmad_kit.io.atomic import write_text_atomic
from bmad_kit.io.csv_io import read_csv, render_csv
from bmad_kit.io.installation import get_config_dir

logger = logging.getLogger(__name__)

MODULE_CATALOG_FILENAME = "module-help.csv"
MERGED_CATALOG_FILENAME = "bmad-help.csv"
KEY_COLUMNS = ("command", "name")


@dataclass(frozen=True)
class HelpCatalog:
    """One module's partial catalog."""

    module: str
    header: list[str]
    rows: list[dict[str, str]]


@dataclass(frozen=True)
class MergedHelpCatalog:
    header: list[str]
    rows: list[dict[str, str]]
    duplicates: int

    def render(self) -> str:
        return render_csv(self.header, ([row.get(c, "") for c in self.header] for row in self.rows))


def normalize_command(value: str) -> str:
    """`/bmad-shard-doc.md` and `bmad-shard-doc` name the same command."""
    command = value.strip().lstrip("/")
    if command.endswith(".md"):
        command = command[: -len(".md")]
    return command


def _row_key(row: dict[str, str]) -> str | None:
    for column in KEY_COLUMNS:
        value = row.get(column, "")
        if value.strip():
            return normalize_command(value)
    return None


def merge_help_rows(catalogs: Sequence[HelpCatalog]) -> MergedHelpCatalog:
    """Merge catalogs, keeping the first row seen for each command.

    The merged header starts with `module`, followed by every other column
    in order of first appearance. Rows without a command are kept unless
    they are exact duplicates. The header row is never counted.
    """
    header = ["module"]
    for catalog in catalogs:
        for column in catalog.header:
            if column not in header:
                header.append(column)

    seen_keys: set[str] = set()
    seen_rows: set[tuple[str, ...]] = set()
    merged: list[dict[str, str]] = []
    duplicates = 0
    for catalog in catalogs:
        for row in catalog.rows:
            row = {**row, "module": row.get("module") or catalog.module}
            key = _row_key(row)
            if key is not None:
                if key in seen_keys:
                    duplicates += 1
                    logger.debug("Dropping duplicate help entry %s from %s", key, catalog.module)
                    continue
                seen_keys.add(key)
            else:
                fingerprint = tuple(row.get(column, "") for column in header)
                if fingerprint in seen_rows:
                    duplicates += 1
                    continue
                seen_rows.add(fingerprint)
            merged.append(row)

    return MergedHelpCatalog(header=header, rows=merged, duplicates=duplicates)


def load_module_catalogs(installed_root: Path, modules: Sequence[str]) -> list[HelpCatalog]:
    """Load `<module>/module-help.csv` for each module that has one."""
    catalogs = []
    for module in modules:
        path = installed_root / module / MODULE_CATALOG_FILENAME
        if not path.is_file():
            continue
        header, rows = read_csv(path)
        catalogs.append(HelpCatalog(module=module, header=header, rows=rows))
    return catalogs


def write_help_catalog(installed_root: Path, modules: Sequence[str]) -> MergedHelpCatalog:
    """Merge module catalogs and write _cfg/bmad-help.csv atomically.

    The merged file is regenerated from the module catalogs alone.
    """
    merged = merge_help_rows(load_module_catalogs(installed_root, modules))
    write_text_atomic(get_config_dir(installed_root) / MERGED_CATALOG_FILENAME, merged.render())
    return merged
