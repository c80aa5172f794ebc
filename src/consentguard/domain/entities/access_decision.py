"""Access decision - ephemeral, embedded into audit and violation records."""

from dataclasses import dataclass, field
from typing import Any

from consentguard.domain.value_objects import DecisionOutcome, RiskLevel


@dataclass(frozen=True)
class AccessDecision:
    """Allow/deny decision with risk classification."""

    principal_id: str | None
    permission: str
    outcome: DecisionOutcome
    risk_level: RiskLevel
    audit_required: bool
    justification: str
    consent_id: str | None = None
    restrictions: list[str] = field(default_factory=list)

    @property
    def allowed(self) -> bool:
        return self.outcome == DecisionOutcome.ALLOW

    def to_details(self) -> dict[str, Any]:
        """Plain mapping stored inside audit entries."""
        return {
            "principal_id": self.principal_id,
            "permission": self.permission,
            "outcome": self.outcome.value,
            "risk_level": self.risk_level.value,
            "audit_required": self.audit_required,
            "consent_id": self.consent_id,
            "justification": self.justification,
            "restrictions": list(self.restrictions),
        }
