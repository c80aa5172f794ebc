"""Access and consent request DTOs."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ConsentRequest:
    """What a consent must cover: data categories plus optional scope values."""

    data_categories: list[str] = field(default_factory=list)
    purpose: str | None = None
    facility_id: str | None = None
    provider_id: str | None = None
    service_type: str | None = None


@dataclass
class AccessContext:
    """Patient/resource context for an access check.

    ``attributes`` is the context matched against permission conditions.
    Without ``patient_id`` no consent is required.
    """

    patient_id: str | None = None
    data_categories: list[str] = field(default_factory=list)
    purpose: str | None = None
    facility_id: str | None = None
    provider_id: str | None = None
    service_type: str | None = None
    emergency_override: bool = False
    resource_type: str | None = None
    resource_id: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    def consent_request(self) -> ConsentRequest:
        return ConsentRequest(
            data_categories=list(self.data_categories),
            purpose=self.purpose,
            facility_id=self.facility_id,
            provider_id=self.provider_id,
            service_type=self.service_type,
        )
