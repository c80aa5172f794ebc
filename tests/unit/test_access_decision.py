"""Unit tests for AccessDecisionEngine, including end-to-end scenarios over fakes."""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from consentguard.application.dto.access_request import AccessContext
from consentguard.application.dto.verification import PermissionCheck
from consentguard.application.services.access_decision import AccessDecisionEngine
from consentguard.application.services.consent_store import ConsentStore
from consentguard.application.services.violation_escalator import ViolationEscalator
from consentguard.domain.catalog import EMERGENCY_ACCESS, PATIENT_READ
from consentguard.domain.entities import ConsentScope, Principal
from consentguard.domain.exceptions import StoreUnavailable
from consentguard.domain.value_objects import (
    ActionResult,
    DecisionOutcome,
    RiskLevel,
    ViolationType,
)

from tests.conftest import FakeUnitOfWork, make_consent


@pytest_asyncio.fixture
async def engine(catalog, uow_factory, audit, clock, clinician) -> AccessDecisionEngine:
    """Engine over the real catalog and store; clinician holds the doctor role."""
    await catalog.assign_role(clinician.id, "doctor", assigned_by="admin")
    await audit.wait_idle()
    consents = ConsentStore(uow_factory, audit, clock=clock)
    escalator = ViolationEscalator(uow_factory)
    return AccessDecisionEngine(catalog, consents, audit, escalator, clock=clock)


def patient_context(patient_id: str, *categories: str, **kwargs) -> AccessContext:
    return AccessContext(
        patient_id=patient_id,
        data_categories=list(categories) or ["demographics"],
        **kwargs,
    )


def decision_entries(fake_uow: FakeUnitOfWork):
    return [e for e in fake_uow.audit_log.entries if e.action == "data_access"]


@pytest.mark.asyncio
async def test_clinician_allowed_with_covering_consent(
    engine, clinician, audit, fake_uow: FakeUnitOfWork
) -> None:
    """Granted, unrestricted consent covering demographics allows at low risk."""
    fake_uow.consents.add(make_consent("c1", patient_id="P"))

    decision = await engine.check_access(clinician, PATIENT_READ, patient_context("P"))
    await audit.wait_idle()

    assert decision.outcome == DecisionOutcome.ALLOW
    assert decision.risk_level == RiskLevel.LOW
    assert decision.consent_id == "c1"
    [entry] = decision_entries(fake_uow)
    assert entry.action_result == ActionResult.SUCCESS
    assert entry.details["consent_id"] == "c1"
    assert fake_uow.violations.violations == []


@pytest.mark.asyncio
async def test_clinician_denied_without_consents(
    engine, clinician, audit, fake_uow: FakeUnitOfWork
) -> None:
    """Patient with zero consents: deny, one unauthorized_access violation, one failure entry."""
    decision = await engine.check_access(clinician, PATIENT_READ, patient_context("Q"))
    await audit.wait_idle()

    assert decision.outcome == DecisionOutcome.DENY
    [violation] = fake_uow.violations.violations
    assert violation.type == ViolationType.UNAUTHORIZED_ACCESS
    assert violation.severity == RiskLevel.CRITICAL
    assert violation.patient_id == "Q"
    [entry] = decision_entries(fake_uow)
    assert entry.action_result == ActionResult.FAILURE


@pytest.mark.asyncio
async def test_uncovered_request_is_scope_violation(
    engine, clinician, audit, fake_uow: FakeUnitOfWork
) -> None:
    fake_uow.consents.add(
        make_consent("c1", patient_id="P", scope=ConsentScope(facilities={"F1"}))
    )

    decision = await engine.check_access(
        clinician, PATIENT_READ, patient_context("P", facility_id="F2")
    )

    assert not decision.allowed
    [violation] = fake_uow.violations.violations
    assert violation.type == ViolationType.SCOPE_VIOLATION
    assert violation.severity == RiskLevel.HIGH


@pytest.mark.asyncio
async def test_missing_permission_denied_with_violation(
    engine, audit, fake_uow: FakeUnitOfWork
) -> None:
    stranger = Principal(id="stranger", email_verified=True)

    decision = await engine.check_access(stranger, PATIENT_READ, patient_context("P"))
    await audit.wait_idle()

    assert not decision.allowed
    assert "no roles assigned" in decision.justification
    [violation] = fake_uow.violations.violations
    assert violation.type == ViolationType.UNAUTHORIZED_ACCESS
    assert violation.severity == RiskLevel.HIGH
    assert len(decision_entries(fake_uow)) == 1


@pytest.mark.asyncio
async def test_unauthenticated_principal_denied(
    engine, audit, identity, fake_uow: FakeUnitOfWork
) -> None:
    """The signed-in identity is never stamped on an unauthenticated denial."""
    assert identity.current_principal() is not None

    decision = await engine.check_access(None, PATIENT_READ, patient_context("P"))
    await audit.wait_idle()

    assert decision.outcome == DecisionOutcome.DENY
    assert fake_uow.violations.violations == []
    assert decision_entries(fake_uow) == []
    assert audit.stats.dropped["unauthenticated"] == 1


@pytest.mark.asyncio
async def test_non_patient_resource_allowed_low_risk(engine, clinician) -> None:
    decision = await engine.check_access(clinician, "appointment:read", AccessContext())
    assert decision.allowed
    assert decision.risk_level == RiskLevel.LOW
    assert not decision.audit_required


@pytest.mark.asyncio
async def test_emergency_override_requires_emergency_permission(
    engine, clinician, fake_uow: FakeUnitOfWork
) -> None:
    decision = await engine.check_access(
        clinician, PATIENT_READ, patient_context("Q", emergency_override=True)
    )

    assert not decision.allowed
    assert decision.risk_level == RiskLevel.CRITICAL
    [violation] = fake_uow.violations.violations
    assert violation.severity == RiskLevel.CRITICAL


@pytest.mark.asyncio
async def test_emergency_override_with_break_glass(
    engine, catalog, audit, fake_uow: FakeUnitOfWork
) -> None:
    """system_admin may override consent; decision is critical and audited."""
    admin = Principal(id="admin-1", email="a@example.org", email_verified=True)
    await catalog.assign_role(admin.id, "system_admin", assigned_by="root")

    decision = await engine.check_access(
        admin, PATIENT_READ, patient_context("Q", "labs", emergency_override=True)
    )
    await audit.wait_idle()

    assert decision.allowed
    assert decision.risk_level == RiskLevel.CRITICAL
    assert decision.audit_required
    assert fake_uow.violations.violations == []
    [entry] = decision_entries(fake_uow)
    assert entry.action_result == ActionResult.SUCCESS


@pytest.mark.asyncio
async def test_emergency_access_permission_alone_allows_override(
    engine, catalog, fake_uow: FakeUnitOfWork
) -> None:
    """emergency:access without break-glass is enough for an override."""
    await catalog.create_role(
        "er_physician", "Emergency room", permissions=[PATIENT_READ, EMERGENCY_ACCESS]
    )
    physician = Principal(id="er-1", email_verified=True)
    await catalog.assign_role(physician.id, "er_physician", assigned_by="admin")

    decision = await engine.check_access(
        physician, PATIENT_READ, patient_context("Q", emergency_override=True)
    )

    assert decision.allowed
    assert decision.risk_level == RiskLevel.CRITICAL
    assert fake_uow.violations.violations == []


@pytest.mark.asyncio
async def test_critical_category_allowed_with_audit(
    engine, clinician, fake_uow: FakeUnitOfWork
) -> None:
    fake_uow.consents.add(
        make_consent("c1", patient_id="P", categories={"labs": RiskLevel.CRITICAL})
    )

    decision = await engine.check_access(clinician, PATIENT_READ, patient_context("P", "labs"))

    assert decision.allowed
    assert decision.risk_level == RiskLevel.CRITICAL
    assert decision.audit_required


@pytest.mark.asyncio
async def test_store_failure_propagates_after_failure_audit(
    engine, clinician, audit, fake_uow: FakeUnitOfWork
) -> None:
    """StoreUnavailable is never read as 'no consent'."""
    fake_uow.consents.fail_reads = True

    with pytest.raises(StoreUnavailable):
        await engine.check_access(clinician, PATIENT_READ, patient_context("P"))
    await audit.wait_idle()

    [entry] = decision_entries(fake_uow)
    assert entry.action_result == ActionResult.FAILURE
    assert "read failed" not in (entry.reason or "")
    assert fake_uow.violations.violations == []


@pytest.mark.asyncio
async def test_unverified_principal_denials_still_audited(
    catalog, uow_factory, audit, clock, fake_uow: FakeUnitOfWork
) -> None:
    """Denials are critical events and bypass the verified-email gate."""
    engine = AccessDecisionEngine(
        catalog,
        ConsentStore(uow_factory, audit, clock=clock),
        audit,
        ViolationEscalator(uow_factory),
        clock=clock,
    )
    unverified = Principal(id="u-new", email="new@example.org")

    await engine.check_access(unverified, PATIENT_READ, patient_context("P"))
    await audit.wait_idle()

    assert len(decision_entries(fake_uow)) == 1


@pytest.mark.asyncio
async def test_engine_uses_permission_checker_port(
    mock_permission_checker, uow_factory, clock
) -> None:
    """Any PermissionChecker works; condition context is the access attributes."""
    audit = AsyncMock()
    audit.enqueue = lambda event, principal=None: True
    escalator = AsyncMock()
    mock_permission_checker.has_permission.return_value = PermissionCheck(
        granted=False, reason="permission not found in user roles"
    )
    engine = AccessDecisionEngine(
        mock_permission_checker,
        ConsentStore(uow_factory, clock=clock),
        audit,
        escalator,
        clock=clock,
    )
    principal = Principal(id="u1", email_verified=True)

    decision = await engine.check_access(
        principal, "billing:read", AccessContext(attributes={"facility_id": "F1"})
    )

    assert not decision.allowed
    mock_permission_checker.has_permission.assert_awaited_once_with(
        "u1", "billing:read", {"facility_id": "F1"}
    )
    escalator.record.assert_awaited_once()
