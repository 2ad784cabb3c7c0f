"""Installation state models for _cfg/manifest.yaml."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InstallationInfo(BaseModel):
    """The `installation` block of the installation manifest."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: str = Field(..., min_length=1)
    install_date: str | None = Field(default=None, alias="installDate")
    last_updated: str | None = Field(default=None, alias="lastUpdated")


class InstallationManifest(BaseModel):
    """Which modules and integration targets a previous install selected.

    Loaded once per process and passed explicitly to the components that
    need it. Only the installer produces updated copies.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    installation: InstallationInfo
    modules: list[str] = Field(default_factory=list)
    ides: list[str] = Field(default_factory=list)

    @field_validator("modules", "ides")
    @classmethod
    def validate_unique(cls, v: list[str]) -> list[str]:
        """Drop duplicates while keeping the first-seen order."""
        seen: dict[str, None] = {}
        for item in v:
            if not item or not item.strip():
                raise ValueError("entries must be non-empty strings")
            seen.setdefault(item, None)
        return list(seen)

    def with_selection(
        self, modules: list[str], ides: list[str], version: str, now: str
    ) -> "InstallationManifest":
        """Return a new manifest recording the given selection."""
        info = InstallationInfo(
            version=version,
            install_date=self.installation.install_date or now,
            last_updated=now,
        )
        return InstallationManifest(installation=info, modules=modules, ides=ides)

    @staticmethod
    def fresh(
        modules: list[str], ides: list[str], version: str, now: str
    ) -> "InstallationManifest":
        info = InstallationInfo(version=version, install_date=now, last_updated=now)
        return InstallationManifest(installation=info, modules=modules, ides=ides)

    def to_yaml_data(self) -> dict[str, object]:
        """Serialize with the on-disk camelCase keys, in a fixed key order."""
        return {
            "installation": self.installation.model_dump(by_alias=True, exclude_none=True),
            "modules": list(self.modules),
            "ides": list(self.ides),
        }
