"""Risk, sensitivity and severity levels."""

from collections.abc import Iterable
from enum import StrEnum


class RiskLevel(StrEnum):
    """Ordered level shared by data sensitivity, decision risk and violation severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def is_elevated(self) -> bool:
        """High or critical."""
        return self.rank >= _RANKS[RiskLevel.HIGH]

    @classmethod
    def highest(cls, levels: Iterable["RiskLevel"]) -> "RiskLevel":
        """Maximum level, LOW for an empty iterable."""
        return max(levels, key=lambda level: level.rank, default=cls.LOW)


_RANKS = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}
