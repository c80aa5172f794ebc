"""Access decision outcome."""

from enum import StrEnum


class DecisionOutcome(StrEnum):
    ALLOW = "allow"
    DENY = "deny"
