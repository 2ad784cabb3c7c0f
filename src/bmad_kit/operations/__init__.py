"""Operations for bmad-kit.

Import from submodules:
- dedup: filter_task_artifacts
- help_catalog: merge_help_rows, write_help_catalog
- install: InstallRequest, InstallResult, Installer
- manifest: ManifestOptions, generate_manifests
"""
