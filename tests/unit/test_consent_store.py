"""Unit tests for ConsentStore."""

import asyncio
from datetime import timedelta

import pytest

from consentguard.application.dto.access_request import ConsentRequest
from consentguard.application.services.consent_store import ConsentStore, consent_covers
from consentguard.domain.entities import ConsentScope, DataCategory
from consentguard.domain.exceptions import NotFound, StoreUnavailable
from consentguard.domain.value_objects import (
    ConsentStatus,
    ConsentType,
    GeographicScope,
    RiskLevel,
)

from tests.conftest import NOW, FakeUnitOfWork, make_consent


@pytest.fixture
def store(uow_factory, audit, clock) -> ConsentStore:
    return ConsentStore(uow_factory, audit, clock=clock)


def demographics() -> ConsentRequest:
    return ConsentRequest(data_categories=["demographics"])


@pytest.mark.asyncio
async def test_no_consents_returns_none(store: ConsentStore) -> None:
    lookup = await store.lookup("patient-1", demographics())
    assert lookup.consent is None
    assert lookup.active_count == 0


@pytest.mark.asyncio
async def test_emergency_consent_preferred_over_newer_treatment(
    store: ConsentStore, fake_uow: FakeUnitOfWork
) -> None:
    """Emergency consent from yesterday wins over a treatment consent from today."""
    fake_uow.consents.add(
        make_consent(
            "c-emergency",
            consent_type=ConsentType.EMERGENCY,
            created_at=NOW - timedelta(days=1),
        )
    )
    fake_uow.consents.add(
        make_consent("c-treatment", consent_type=ConsentType.TREATMENT, created_at=NOW)
    )

    consent = await store.find_applicable_consent("patient-1", demographics())

    assert consent is not None
    assert consent.id == "c-emergency"


@pytest.mark.asyncio
async def test_treatment_preferred_then_newest(
    store: ConsentStore, fake_uow: FakeUnitOfWork
) -> None:
    fake_uow.consents.add(
        make_consent("c-research", consent_type=ConsentType.RESEARCH, created_at=NOW)
    )
    fake_uow.consents.add(
        make_consent("c-old", created_at=NOW - timedelta(days=30))
    )
    fake_uow.consents.add(
        make_consent("c-new", created_at=NOW - timedelta(days=2))
    )

    consent = await store.find_applicable_consent("patient-1", demographics())

    assert consent.id == "c-new"


@pytest.mark.asyncio
async def test_expired_consent_is_ignored(store: ConsentStore, fake_uow: FakeUnitOfWork) -> None:
    fake_uow.consents.add(make_consent("c1", expires_at=NOW - timedelta(minutes=1)))

    lookup = await store.lookup("patient-1", demographics())

    assert lookup.consent is None
    assert lookup.active_count == 0


def test_facility_scope_coverage() -> None:
    """Restricted facility scope excludes other facilities; empty scope covers all."""
    restricted = make_consent("c1", scope=ConsentScope(facilities={"F1"}))
    unrestricted = make_consent("c2", scope=ConsentScope())
    request = ConsentRequest(data_categories=["demographics"], facility_id="F2")

    assert not consent_covers(restricted, request)
    assert consent_covers(unrestricted, request)
    assert consent_covers(
        restricted, ConsentRequest(data_categories=["demographics"], facility_id="F1")
    )


def test_all_requested_categories_must_be_present() -> None:
    consent = make_consent("c1", categories={"demographics": RiskLevel.LOW})
    assert not consent_covers(
        consent, ConsentRequest(data_categories=["demographics", "labs"])
    )


@pytest.mark.asyncio
async def test_active_but_uncovering_consents_are_counted(
    store: ConsentStore, fake_uow: FakeUnitOfWork
) -> None:
    fake_uow.consents.add(make_consent("c1", scope=ConsentScope(providers={"P1"})))

    lookup = await store.lookup(
        "patient-1", ConsentRequest(data_categories=["demographics"], provider_id="P2")
    )

    assert lookup.consent is None
    assert lookup.active_count == 1


@pytest.mark.asyncio
async def test_cache_serves_repeat_lookups(store: ConsentStore, fake_uow: FakeUnitOfWork) -> None:
    fake_uow.consents.add(make_consent("c1"))

    await store.find_applicable_consent("patient-1", demographics())
    await store.find_applicable_consent("patient-1", demographics())

    assert fake_uow.consents.reads == 1


@pytest.mark.asyncio
async def test_cache_entry_expires_after_ttl(
    store: ConsentStore, fake_uow: FakeUnitOfWork, clock
) -> None:
    fake_uow.consents.add(make_consent("c1"))

    await store.find_applicable_consent("patient-1", demographics())
    clock.advance(minutes=6)
    await store.find_applicable_consent("patient-1", demographics())

    assert fake_uow.consents.reads == 2


@pytest.mark.asyncio
async def test_revoked_consent_never_returned_after_cache(
    store: ConsentStore, fake_uow: FakeUnitOfWork
) -> None:
    """Revocation evicts the cache synchronously; the revoked consent is never served."""
    fake_uow.consents.add(make_consent("c1"))
    assert (await store.find_applicable_consent("patient-1", demographics())).id == "c1"
    assert store.cache_size == 1

    await store.revoke_consent("c1", reason="patient request", revoked_by="patient-1")

    assert store.cache_size == 0
    assert await store.find_applicable_consent("patient-1", demographics()) is None
    assert fake_uow.consents._by_id["c1"].status == ConsentStatus.REVOKED


@pytest.mark.asyncio
async def test_cached_consent_served_over_newer_higher_priority_until_ttl(
    store: ConsentStore, fake_uow: FakeUnitOfWork, clock
) -> None:
    fake_uow.consents.add(make_consent("treatment"))
    assert (await store.find_applicable_consent("patient-1", demographics())).id == "treatment"

    fake_uow.consents.add(make_consent("emergency", consent_type=ConsentType.EMERGENCY))
    assert (await store.find_applicable_consent("patient-1", demographics())).id == "treatment"

    clock.advance(minutes=6)
    assert (await store.find_applicable_consent("patient-1", demographics())).id == "emergency"


@pytest.mark.asyncio
async def test_revoke_during_pending_read_is_not_cached(
    store: ConsentStore, fake_uow: FakeUnitOfWork
) -> None:
    """A read that started before a revocation must not cache the stale granted copy."""
    fake_uow.consents.add(make_consent("c1"))
    list_granted = fake_uow.consents.list_granted_for_patient
    read_started = asyncio.Event()
    release_read = asyncio.Event()

    async def slow_list_granted(patient_id: str, *, limit: int = 10):
        snapshot = await list_granted(patient_id, limit=limit)
        read_started.set()
        await release_read.wait()
        return snapshot

    fake_uow.consents.list_granted_for_patient = slow_list_granted
    pending = asyncio.create_task(store.find_applicable_consent("patient-1", demographics()))
    await read_started.wait()

    await store.revoke_consent("c1", reason="patient request", revoked_by="patient-1")
    release_read.set()
    await pending

    assert store.cache_size == 0
    fake_uow.consents.list_granted_for_patient = list_granted
    assert await store.find_applicable_consent("patient-1", demographics()) is None


@pytest.mark.asyncio
async def test_revoke_missing_consent_raises_not_found(store: ConsentStore) -> None:
    with pytest.raises(NotFound):
        await store.revoke_consent("missing", reason="x", revoked_by="admin")


@pytest.mark.asyncio
async def test_revoke_is_audited(store: ConsentStore, audit, fake_uow: FakeUnitOfWork) -> None:
    fake_uow.consents.add(make_consent("c1"))

    await store.revoke_consent("c1", reason="moved away", revoked_by="patient-1")
    await audit.wait_idle()

    entry = fake_uow.audit_log.entries[-1]
    assert entry.action == "consent_management"
    assert entry.reason == "Consent revoked: moved away"


@pytest.mark.asyncio
async def test_store_failure_propagates(store: ConsentStore, fake_uow: FakeUnitOfWork) -> None:
    """A failed read is an error, never 'no consent'."""
    fake_uow.consents.fail_reads = True
    with pytest.raises(StoreUnavailable):
        await store.lookup("patient-1", demographics())


def test_verify_scope_critical_category(store: ConsentStore) -> None:
    """Critical labs category yields critical risk and required audit."""
    consent = make_consent("c1", categories={"labs": RiskLevel.CRITICAL})

    result = store.verify_scope(consent, ConsentRequest(data_categories=["labs"]))

    assert result.valid
    assert result.risk_level == RiskLevel.CRITICAL
    assert result.audit_required


def test_verify_scope_low_risk_no_audit(store: ConsentStore) -> None:
    consent = make_consent("c1")
    result = store.verify_scope(consent, demographics())
    assert result.valid
    assert result.risk_level == RiskLevel.LOW
    assert not result.audit_required
    assert result.consent_id == "c1"


def test_verify_scope_many_categories_requires_audit(store: ConsentStore) -> None:
    names = [f"cat{i}" for i in range(6)]
    consent = make_consent("c1", categories={n: RiskLevel.LOW for n in names})

    result = store.verify_scope(consent, ConsentRequest(data_categories=names))

    assert result.risk_level == RiskLevel.LOW
    assert result.audit_required


def test_verify_scope_uncovered_category_invalid(store: ConsentStore) -> None:
    consent = make_consent("c1")
    result = store.verify_scope(consent, ConsentRequest(data_categories=["genetics"]))
    assert not result.valid
    assert "genetics" in result.justification


def test_verify_scope_inactive_consent_invalid(store: ConsentStore) -> None:
    consent = make_consent("c1", status=ConsentStatus.SUSPENDED)
    assert not store.verify_scope(consent, demographics()).valid


def test_verify_scope_restrictions(store: ConsentStore) -> None:
    """Local scope with a facility and explicit-consent categories produce restrictions."""
    consent = make_consent("c1", scope=ConsentScope(geographic_scope=GeographicScope.LOCAL))
    consent.data_categories.append(
        DataCategory(
            category="mental_health",
            sensitivity=RiskLevel.HIGH,
            requires_explicit_consent=True,
        )
    )

    result = store.verify_scope(
        consent,
        ConsentRequest(data_categories=["demographics", "mental_health"], facility_id="F1"),
    )

    assert result.valid
    assert len(result.restrictions) == 2
    assert result.risk_level == RiskLevel.HIGH


def test_handle_emergency_access(store: ConsentStore) -> None:
    result = store.handle_emergency_access(ConsentRequest(data_categories=["labs", "vitals"]))
    assert result.valid
    assert result.risk_level == RiskLevel.CRITICAL
    assert result.audit_required
    assert result.consent_type == ConsentType.EMERGENCY
    assert {c.category for c in result.data_categories} == {"labs", "vitals"}
    assert all(c.sensitivity == RiskLevel.HIGH for c in result.data_categories)
