"""Exception taxonomy for bmad-kit.

Per-component failures (definition and overlay loading) are collected by the
installer and reported in batch. Manifest write failures abort the run.
Discovery failures are logged and skipped.
"""

from pathlib import Path


class BmadKitError(Exception):
    """Base class for all predictable bmad-kit failures."""


class DefinitionLoadError(BmadKitError):
    """Raised when a base definition is missing or not a YAML mapping."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load definition {path}: {reason}")


class OverlayLoadError(BmadKitError):
    """Raised when an explicitly requested overlay is missing or malformed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load overlay {path}: {reason}")


class ManifestWriteError(BmadKitError):
    """Raised when manifest output cannot be staged or committed.

    No manifest of the failing call is published when this is raised.
    """

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write manifest {path}: {reason}")


class DiscoveryIOError(BmadKitError):
    """An unreadable entry met during discovery. Logged, never fatal."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Skipping {path}: {reason}")
