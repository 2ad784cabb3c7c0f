"""Data models for bmad-kit.

Import from submodules:
- definition: ComponentDefinition, ComponentKind, TreeValue
- component: DiscoveredComponent
- installation: InstallationInfo, InstallationManifest
- manifest: ManifestStats
"""
