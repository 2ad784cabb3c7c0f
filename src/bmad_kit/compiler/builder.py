"""Definition compiler: base + overlay -> resolved, rendered artifact."""

import hashlib
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from bmad_kit.compiler.merge import deep_merge
from bmad_kit.compiler.render import BuildMetadata, render_definition
from bmad_kit.compiler.variables import find_placeholders, resolve_variables
from bmad_kit.io.atomic import write_text_atomic
from bmad_kit.io.definition import definition_from_document, load_document, load_overlay
from bmad_kit.models.definition import ComponentKind, TreeValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompileOptions:
    """Options for a single compile call.

    Attributes:
        variables: Resolution table for `{name}` placeholders
        include_metadata: Record source and overlay hashes in the artifact
        inject_default_menu: Add `*help` and `*exit` menu items to agents
        source_label: Path shown in metadata (defaults to the definition path)
    """

    variables: Mapping[str, str] = field(default_factory=dict)
    include_metadata: bool = True
    inject_default_menu: bool = True
    source_label: str | None = None


@dataclass(frozen=True)
class CompileResult:
    """Result of compiling one definition."""

    output_path: Path
    kind: ComponentKind
    identifier: str
    title: str
    unresolved: frozenset[str]


def _sha256(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def compile_definition(
    definition_path: Path,
    overlay_path: Path | None,
    output_path: Path,
    options: CompileOptions | None = None,
) -> CompileResult:
    """Compile a definition with an optional overlay into output_path.

    Performs exactly one file write, atomically. Nothing is written when
    loading, merging or rendering fails.

    Args:
        definition_path: Base definition YAML
        overlay_path: Customization overlay YAML, or None for no overlay
        output_path: Destination of the compiled artifact
        options: Compile options (defaults to CompileOptions())

    Returns:
        CompileResult with the output path and any placeholders left unresolved

    Raises:
        DefinitionLoadError: If the base definition is missing or malformed
        OverlayLoadError: If overlay_path is given but missing or malformed
    """
    if options is None:
        options = CompileOptions()

    document = load_document(definition_path)
    overlay_hash: str | None = None
    if overlay_path is not None:
        overlay = load_overlay(overlay_path)
        document = deep_merge(document, overlay)
        overlay_hash = _sha256(overlay_path)
        logger.debug("Merged overlay %s onto %s", overlay_path, definition_path)

    resolved = resolve_variables(document, options.variables)
    assert isinstance(resolved, dict)
    definition = definition_from_document(resolved, definition_path)

    unresolved = frozenset(find_placeholders(_as_tree(definition.tree)))
    if unresolved:
        logger.debug(
            "Leaving %d runtime placeholder(s) in %s: %s",
            len(unresolved),
            definition_path.name,
            ", ".join(sorted(unresolved)),
        )

    metadata = None
    if options.include_metadata:
        metadata = BuildMetadata(
            source_label=options.source_label or definition_path.name,
            source_hash=_sha256(definition_path),
            overlay_hash=overlay_hash,
        )

    content = render_definition(definition, options.inject_default_menu, metadata)
    write_text_atomic(output_path, content)
    logger.debug("Compiled %s -> %s", definition_path, output_path)

    return CompileResult(
        output_path=output_path,
        kind=definition.kind,
        identifier=definition.identifier,
        title=definition.title,
        unresolved=unresolved,
    )


def _as_tree(tree: Mapping[str, TreeValue]) -> TreeValue:
    return dict(tree)
