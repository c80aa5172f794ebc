"""Consent store - active consent lookup, scope verification, short-TTL cache."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from consentguard.application.dto.access_request import ConsentRequest
from consentguard.application.dto.audit_event import AuditEvent
from consentguard.application.dto.verification import ConsentLookup, VerificationResult
from consentguard.application.ports import AuditSink, UnitOfWorkFactory
from consentguard.domain.entities import DataCategory, PatientConsent
from consentguard.domain.exceptions import NotFound
from consentguard.domain.value_objects import (
    ActionType,
    ConsentType,
    GeographicScope,
    RiskLevel,
)
from consentguard.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CACHE_TTL = timedelta(minutes=5)
DEFAULT_FETCH_LIMIT = 10
# Requests spanning more categories than this always require audit review.
AUDIT_CATEGORY_THRESHOLD = 5

_TYPE_PRIORITY = {ConsentType.EMERGENCY: 0, ConsentType.TREATMENT: 1}


@dataclass
class _CacheEntry:
    consent: PatientConsent
    expires_at: datetime


def consent_priority_key(consent: PatientConsent) -> tuple[int, float]:
    """Emergency first, then treatment, then newest first."""
    return (_TYPE_PRIORITY.get(consent.consent_type, 2), -consent.created_at.timestamp())


def consent_covers(consent: PatientConsent, request: ConsentRequest) -> bool:
    """Scope coverage: empty scope sets are unrestricted; all categories must be consented."""
    scope = consent.scope
    if request.facility_id and scope.facilities and request.facility_id not in scope.facilities:
        return False
    if request.provider_id and scope.providers and request.provider_id not in scope.providers:
        return False
    if request.service_type and scope.services and request.service_type not in scope.services:
        return False
    return set(request.data_categories) <= consent.category_names()


class ConsentStore:
    """Resolves which consent, if any, authorizes a request for a patient."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        audit: AuditSink | None = None,
        *,
        cache_ttl: timedelta = DEFAULT_CACHE_TTL,
        fetch_limit: int = DEFAULT_FETCH_LIMIT,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._audit = audit
        self._cache_ttl = cache_ttl
        self._fetch_limit = fetch_limit
        self._clock = clock or (lambda: datetime.now(UTC))
        self._cache: dict[str, _CacheEntry] = {}
        # Bumped by every revocation; a lookup whose read overlapped one does not cache.
        self._revocations = 0

    async def find_applicable_consent(
        self, patient_id: str, request: ConsentRequest
    ) -> PatientConsent | None:
        """Highest-priority active consent covering the request, or None."""
        lookup = await self.lookup(patient_id, request)
        return lookup.consent

    async def lookup(self, patient_id: str, request: ConsentRequest) -> ConsentLookup:
        """Resolve the covering consent and report how many active consents exist.

        A cached consent is served while it is still active and still covers
        the request, even if a higher-priority consent written since would
        also cover it. That staleness is bounded by the cache TTL.

        Store failures propagate as StoreUnavailable; they are never read as
        "no consent".
        """
        now = self._clock()
        cached = self._cached(patient_id, now)
        if cached is not None and cached.is_active(now) and consent_covers(cached, request):
            logger.debug("consent_cache_hit", patient_id=patient_id, consent_id=cached.id)
            return ConsentLookup(consent=cached, active_count=1)

        revocations = self._revocations
        active = await self._active_consents(patient_id, now)
        for consent in sorted(active, key=consent_priority_key):
            if consent_covers(consent, request):
                if revocations == self._revocations:
                    self._cache[patient_id] = _CacheEntry(consent, now + self._cache_ttl)
                self._evict_expired(now)
                return ConsentLookup(consent=consent, active_count=len(active))

        logger.info(
            "no_applicable_consent",
            patient_id=patient_id,
            active_consents=len(active),
        )
        return ConsentLookup(consent=None, active_count=len(active))

    async def _active_consents(self, patient_id: str, now: datetime) -> list[PatientConsent]:
        async with self._uow_factory() as uow:
            granted = await uow.consents.list_granted_for_patient(
                patient_id, limit=self._fetch_limit
            )
        return [c for c in granted if c.is_active(now)]

    def _cached(self, patient_id: str, now: datetime) -> PatientConsent | None:
        entry = self._cache.get(patient_id)
        if entry is None:
            return None
        if entry.expires_at <= now:
            del self._cache[patient_id]
            return None
        return entry.consent

    def _evict_expired(self, now: datetime) -> None:
        for key in [k for k, e in self._cache.items() if e.expires_at <= now]:
            del self._cache[key]

    def verify_scope(self, consent: PatientConsent, request: ConsentRequest) -> VerificationResult:
        """Check consent against request and classify the risk of the access."""
        requested = set(request.data_categories)
        matched = [c for c in consent.data_categories if c.category in requested]
        risk_level = RiskLevel.highest(c.sensitivity for c in matched)
        audit_required = (
            risk_level.is_elevated or len(request.data_categories) > AUDIT_CATEGORY_THRESHOLD
        )

        if not consent.is_active(self._clock()):
            return self._invalid(consent, "Consent is no longer active")
        missing = requested - consent.category_names()
        if missing:
            return self._invalid(
                consent, f"Consent does not cover data categories: {', '.join(sorted(missing))}"
            )
        if not consent_covers(consent, request):
            return self._invalid(consent, "Request is outside the consented scope")

        restrictions = []
        if consent.scope.geographic_scope == GeographicScope.LOCAL and request.facility_id:
            restrictions.append("Consent is limited to local facilities")
        for category in matched:
            if category.requires_explicit_consent:
                restrictions.append(f"Explicit consent required for category: {category.category}")

        return VerificationResult(
            valid=True,
            risk_level=risk_level,
            audit_required=audit_required,
            consent_type=consent.consent_type,
            restrictions=restrictions,
            data_categories=matched,
            consent_id=consent.id,
            expires_at=consent.expires_at,
            justification="Consent verified successfully",
        )

    @staticmethod
    def _invalid(consent: PatientConsent, justification: str) -> VerificationResult:
        return VerificationResult(
            valid=False,
            risk_level=RiskLevel.CRITICAL,
            audit_required=True,
            consent_type=consent.consent_type,
            consent_id=consent.id,
            justification=justification,
        )

    def handle_emergency_access(self, request: ConsentRequest) -> VerificationResult:
        """Shape the record for an emergency override.

        Does not authorize anything: the caller must already have confirmed
        the principal holds an emergency permission.
        """
        logger.warning("emergency_access_requested", categories=request.data_categories)
        return VerificationResult(
            valid=True,
            risk_level=RiskLevel.CRITICAL,
            audit_required=True,
            consent_type=ConsentType.EMERGENCY,
            data_categories=[
                DataCategory(
                    category=category,
                    sensitivity=RiskLevel.HIGH,
                    description="Emergency access",
                )
                for category in request.data_categories
            ],
            justification="Emergency access granted - requires immediate audit review",
        )

    async def revoke_consent(self, consent_id: str, reason: str, revoked_by: str) -> None:
        """Revoke consent. Cached copies are evicted before the store write.

        Lookups whose store read is still in flight will not cache their result.
        """
        self._revocations += 1
        self._evict_consent(consent_id)
        async with self._uow_factory() as uow:
            consent = await uow.consents.get_by_id(consent_id)
            if consent is None:
                raise NotFound("Consent", consent_id)
            await uow.consents.revoke(
                consent_id,
                revoked_by=revoked_by,
                reason=reason,
                revoked_at=self._clock(),
            )
        self._revocations += 1
        self._evict_consent(consent_id)

        if self._audit is not None:
            self._audit.enqueue(
                AuditEvent(
                    action="consent_management",
                    resource_type="patient_consent",
                    resource_id=consent_id,
                    action_type=ActionType.UPDATE,
                    reason=f"Consent revoked: {reason}",
                )
            )
        logger.info("consent_revoked", consent_id=consent_id, revoked_by=revoked_by)

    def _evict_consent(self, consent_id: str) -> None:
        for key in [k for k, e in self._cache.items() if e.consent.id == consent_id]:
            del self._cache[key]

    def invalidate(self, patient_id: str) -> None:
        self._cache.pop(patient_id, None)

    def clear_cache(self) -> None:
        self._cache.clear()

    @property
    def cache_size(self) -> int:
        return len(self._cache)
