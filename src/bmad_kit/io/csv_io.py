"""CSV rendering and reading for manifests and help catalogs."""

import csv
import io
from collections.abc import Iterable, Sequence
from pathlib import Path


def render_csv(header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    """Render rows with every field quoted and `\\n` line endings.

    Output depends only on the arguments, so regenerating from the same
    rows is byte-identical.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def read_csv(path: Path) -> tuple[list[str], list[dict[str, str]]]:
    """Read a CSV file with a header row.

    Returns:
        Tuple of (header, rows) where each row maps header -> value. Missing
        trailing fields read as empty strings.
    """
    with path.open(encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        header = next(reader, None)
        if header is None:
            return [], []
        header = [column.strip() for column in header]
        rows = []
        for record in reader:
            if not any(field.strip() for field in record):
                continue
            padded = [*record, *([""] * (len(header) - len(record)))]
            rows.append(dict(zip(header, padded, strict=False)))
    return header, rows
