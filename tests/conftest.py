"""Pytest fixtures for ConsentGuard tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio

from consentguard.application.services.audit_pipeline import AuditPipeline
from consentguard.application.services.permission_catalog import PermissionCatalog
from consentguard.domain.entities import (
    AuditLogEntry,
    ComplianceViolation,
    ConsentScope,
    DataCategory,
    PatientConsent,
    Permission,
    Principal,
    Role,
    SecurityAlert,
    UserRoleAssignment,
    assignment_id,
)
from consentguard.domain.exceptions import StoreUnavailable
from consentguard.domain.value_objects import (
    ConsentStatus,
    ConsentType,
    RiskLevel,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class Clock:
    """Settable clock for TTL and expiry tests."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


# --- Fake repositories ---


class FakePermissionRepository:
    """In-memory permission repository."""

    def __init__(self) -> None:
        self._by_id: dict[str, Permission] = {}

    async def get_by_id(self, permission_id: str) -> Permission | None:
        return self._by_id.get(permission_id)

    async def list_all(self, *, active_only: bool = False) -> list[Permission]:
        # Copies, so runtime-only state never leaks back into the store.
        return [
            replace(p, conditions=dict(p.conditions))
            for p in self._by_id.values()
            if p.is_active or not active_only
        ]

    async def count(self) -> int:
        return len(self._by_id)

    async def upsert(self, permission: Permission) -> Permission:
        self._by_id[permission.id] = replace(permission, conditions=dict(permission.conditions))
        return permission

    async def create_batch(self, permissions: list[Permission]) -> None:
        for p in permissions:
            self._by_id.setdefault(p.id, p)

    async def set_active(self, permission_id: str, is_active: bool) -> None:
        self._by_id[permission_id].is_active = is_active


class FakeRoleRepository:
    """In-memory role repository."""

    def __init__(self) -> None:
        self._by_id: dict[str, Role] = {}

    async def get_by_id(self, role_id: str) -> Role | None:
        return self._by_id.get(role_id)

    async def list_all(self, *, active_only: bool = False) -> list[Role]:
        return [
            replace(r, permissions=list(r.permissions))
            for r in self._by_id.values()
            if r.is_active or not active_only
        ]

    async def count(self) -> int:
        return len(self._by_id)

    async def upsert(self, role: Role) -> Role:
        self._by_id[role.id] = replace(role, permissions=list(role.permissions))
        return role

    async def create_batch(self, roles: list[Role]) -> None:
        for r in roles:
            self._by_id.setdefault(r.id, r)

    async def set_active(self, role_id: str, is_active: bool) -> None:
        self._by_id[role_id].is_active = is_active


class FakeUserRoleRepository:
    """In-memory user role repository keyed ``userId_roleId``."""

    def __init__(self) -> None:
        self._by_id: dict[str, UserRoleAssignment] = {}
        self.fail_writes = False
        self.reads = 0

    async def get(self, user_id: str, role_id: str) -> UserRoleAssignment | None:
        return self._by_id.get(assignment_id(user_id, role_id))

    async def list_active_for_user(self, user_id: str) -> list[UserRoleAssignment]:
        self.reads += 1
        return [a for a in self._by_id.values() if a.user_id == user_id and a.is_active]

    async def upsert(self, assignment: UserRoleAssignment) -> UserRoleAssignment:
        if self.fail_writes:
            raise StoreUnavailable("user_roles write failed")
        self._by_id[assignment.id] = assignment
        return assignment

    async def deactivate(
        self, user_id: str, role_id: str, removed_by: str, removed_at: datetime
    ) -> None:
        if self.fail_writes:
            raise StoreUnavailable("user_roles write failed")
        existing = self._by_id[assignment_id(user_id, role_id)]
        self._by_id[existing.id] = replace(
            existing, is_active=False, removed_by=removed_by, removed_at=removed_at
        )


class FakeConsentRepository:
    """In-memory consent repository."""

    def __init__(self) -> None:
        self._by_id: dict[str, PatientConsent] = {}
        self.fail_reads = False
        self.reads = 0

    def add(self, consent: PatientConsent) -> PatientConsent:
        self._by_id[consent.id] = consent
        return consent

    async def get_by_id(self, consent_id: str) -> PatientConsent | None:
        return self._by_id.get(consent_id)

    async def list_granted_for_patient(
        self, patient_id: str, *, limit: int = 10
    ) -> list[PatientConsent]:
        if self.fail_reads:
            raise StoreUnavailable("patient_consents read failed")
        self.reads += 1
        granted = [
            c
            for c in self._by_id.values()
            if c.patient_id == patient_id and c.status == ConsentStatus.GRANTED
        ]
        granted.sort(key=lambda c: c.created_at, reverse=True)
        return granted[:limit]

    async def list_for_patient(self, patient_id: str) -> list[PatientConsent]:
        return [c for c in self._by_id.values() if c.patient_id == patient_id]

    async def create(self, consent: PatientConsent) -> PatientConsent:
        self._by_id[consent.id] = consent
        return consent

    async def revoke(
        self, consent_id: str, *, revoked_by: str, reason: str, revoked_at: datetime
    ) -> None:
        consent = self._by_id[consent_id]
        self._by_id[consent_id] = replace(
            consent,
            status=ConsentStatus.REVOKED,
            revoked_by=revoked_by,
            revoked_reason=reason,
            revoked_at=revoked_at,
            updated_at=revoked_at,
            version=consent.version + 1,
        )


class FakeAuditLogRepository:
    """In-memory audit log; ``fail_next`` makes the next N batch writes fail."""

    def __init__(self) -> None:
        self.entries: list[AuditLogEntry] = []
        self.batches: list[int] = []
        self.fail_next = 0

    async def create_batch(self, entries: list[AuditLogEntry]) -> None:
        if self.fail_next > 0:
            self.fail_next -= 1
            raise StoreUnavailable("audit_log write failed")
        self.batches.append(len(entries))
        self.entries.extend(entries)

    async def count_between(self, start: datetime, end: datetime) -> int:
        return sum(1 for e in self.entries if start <= e.timestamp <= end)


class FakeViolationRepository:
    """In-memory violation repository."""

    def __init__(self) -> None:
        self.violations: list[ComplianceViolation] = []
        self.fail_writes = False

    async def create(self, violation: ComplianceViolation) -> ComplianceViolation:
        if self.fail_writes:
            raise StoreUnavailable("compliance_violations write failed")
        self.violations.append(violation)
        return violation

    async def list_between(self, start: datetime, end: datetime) -> list[ComplianceViolation]:
        return [v for v in self.violations if start <= v.timestamp <= end]


class FakeAlertRepository:
    """In-memory security alert repository."""

    def __init__(self) -> None:
        self.alerts: list[SecurityAlert] = []

    async def create(self, alert: SecurityAlert) -> SecurityAlert:
        self.alerts.append(alert)
        return alert


class FakeUnitOfWork:
    """In-memory Unit of Work with fake repositories."""

    def __init__(self) -> None:
        self.permissions = FakePermissionRepository()
        self.roles = FakeRoleRepository()
        self.user_roles = FakeUserRoleRepository()
        self.consents = FakeConsentRepository()
        self.audit_log = FakeAuditLogRepository()
        self.violations = FakeViolationRepository()
        self.alerts = FakeAlertRepository()

    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass


def make_uow_factory(uow: FakeUnitOfWork):
    """Factory that yields the same FakeUnitOfWork on every call, so state persists."""

    @asynccontextmanager
    async def factory() -> AsyncIterator[FakeUnitOfWork]:
        yield uow

    return factory


class FakeIdentityProvider:
    """Identity provider with a settable principal."""

    def __init__(self, principal: Principal | None = None) -> None:
        self.principal = principal
        self.listeners = []

    @property
    def available(self) -> bool:
        return True

    def current_principal(self) -> Principal | None:
        return self.principal

    def subscribe(self, listener) -> None:
        self.listeners.append(listener)

    def sign_in(self, principal: Principal) -> None:
        self.principal = principal
        for listener in self.listeners:
            listener(principal)


def make_consent(
    consent_id: str,
    patient_id: str = "patient-1",
    *,
    consent_type: ConsentType = ConsentType.TREATMENT,
    status: ConsentStatus = ConsentStatus.GRANTED,
    categories: dict[str, RiskLevel] | None = None,
    scope: ConsentScope | None = None,
    created_at: datetime = NOW - timedelta(days=1),
    expires_at: datetime | None = None,
) -> PatientConsent:
    categories = categories if categories is not None else {"demographics": RiskLevel.LOW}
    return PatientConsent(
        id=consent_id,
        patient_id=patient_id,
        consent_type=consent_type,
        status=status,
        scope=scope or ConsentScope(),
        data_categories=[DataCategory(category=c, sensitivity=s) for c, s in categories.items()],
        created_at=created_at,
        expires_at=expires_at,
    )


# --- Fixtures ---


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def fake_uow() -> FakeUnitOfWork:
    """Fresh in-memory UnitOfWork for each test."""
    return FakeUnitOfWork()


@pytest.fixture
def uow_factory(fake_uow: FakeUnitOfWork):
    """Factory returning async context manager over the shared FakeUnitOfWork."""
    return make_uow_factory(fake_uow)


@pytest.fixture
def clinician() -> Principal:
    return Principal(id="clinician-1", email="doc@example.org", email_verified=True)


@pytest.fixture
def identity(clinician: Principal) -> FakeIdentityProvider:
    return FakeIdentityProvider(clinician)


@pytest.fixture
def audit(uow_factory, identity: FakeIdentityProvider, clock: Clock) -> AuditPipeline:
    """Pipeline with no follow-up delay."""
    return AuditPipeline(uow_factory, identity, followup_delay=0.0, clock=clock)


@pytest_asyncio.fixture
async def catalog(uow_factory, audit: AuditPipeline, clock: Clock) -> PermissionCatalog:
    """Catalog with the built-in roles loaded."""
    catalog = PermissionCatalog(uow_factory, audit, clock=clock)
    await catalog.load_or_bootstrap()
    return catalog


@pytest.fixture
def mock_permission_checker():
    """AsyncMock for PermissionChecker - grants everything by default."""
    from unittest.mock import AsyncMock

    from consentguard.application.dto.verification import PermissionCheck

    mock = AsyncMock()
    mock.has_permission.return_value = PermissionCheck(granted=True)
    return mock
