"""bmad-kit: Definition compiler and manifest synchronization for BMAD installs.

For external tool integration, use the operations directly:
    from bmad_kit.operations.install import Installer, InstallRequest

Import from submodules:
- version: __version__
- compiler: compile_definition, deep_merge, resolve_variables
- operations: generate_manifests, filter_task_artifacts, write_help_catalog
"""

from bmad_kit.version import __version__ as __version__
