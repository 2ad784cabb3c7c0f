"""Services for component discovery."""

from bmad_kit.services.discovery import ComponentDiscovery

__all__ = [
    "ComponentDiscovery",
]
