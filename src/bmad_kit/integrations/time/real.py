"""Production Time implementation."""

from datetime import UTC, datetime

from bmad_kit.integrations.time.abc import Time


class RealTime(Time):
    """Reads the system clock."""

    def now(self) -> datetime:
        return datetime.now(UTC)
