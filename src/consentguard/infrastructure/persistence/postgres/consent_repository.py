"""PostgreSQL patient consent repository implementation."""

from datetime import datetime
from typing import Any

from psycopg import AsyncConnection
from psycopg.types.json import Jsonb

from consentguard.domain.entities import ConsentScope, DataCategory, PatientConsent
from consentguard.domain.value_objects import (
    ConsentStatus,
    ConsentType,
    GeographicScope,
    RiskLevel,
)

_COLUMNS = (
    "id, patient_id, consent_type, status, scope, data_categories, created_at, updated_at, "
    "created_by, expires_at, revoked_at, revoked_by, revoked_reason, "
    "patient_signature, witness_signature, version"
)


def scope_to_document(scope: ConsentScope) -> dict[str, Any]:
    return {
        "facilities": sorted(scope.facilities),
        "providers": sorted(scope.providers),
        "services": sorted(scope.services),
        "geographic_scope": scope.geographic_scope.value,
    }


def scope_from_document(doc: dict[str, Any] | None) -> ConsentScope:
    doc = doc or {}
    return ConsentScope(
        facilities=set(doc.get("facilities", [])),
        providers=set(doc.get("providers", [])),
        services=set(doc.get("services", [])),
        geographic_scope=GeographicScope(doc.get("geographic_scope", GeographicScope.NATIONAL)),
    )


def categories_to_document(categories: list[DataCategory]) -> list[dict[str, Any]]:
    return [
        {
            "category": c.category,
            "sensitivity": c.sensitivity.value,
            "description": c.description,
            "requires_explicit_consent": c.requires_explicit_consent,
        }
        for c in categories
    ]


def categories_from_document(docs: list[dict[str, Any]] | None) -> list[DataCategory]:
    return [
        DataCategory(
            category=d["category"],
            sensitivity=RiskLevel(d.get("sensitivity", RiskLevel.LOW)),
            description=d.get("description", ""),
            requires_explicit_consent=d.get("requires_explicit_consent", False),
        )
        for d in docs or []
    ]


def _row_to_consent(r: tuple) -> PatientConsent:
    return PatientConsent(
        id=r[0],
        patient_id=r[1],
        consent_type=ConsentType(r[2]),
        status=ConsentStatus(r[3]),
        scope=scope_from_document(r[4]),
        data_categories=categories_from_document(r[5]),
        created_at=r[6],
        updated_at=r[7],
        created_by=r[8],
        expires_at=r[9],
        revoked_at=r[10],
        revoked_by=r[11],
        revoked_reason=r[12],
        patient_signature=r[13],
        witness_signature=r[14],
        version=r[15],
    )


class PostgresConsentRepository:
    """Consent repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, consent_id: str) -> PatientConsent | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM patient_consents WHERE id = %s",
            (consent_id,),
        )
        r = await cur.fetchone()
        return _row_to_consent(r) if r else None

    async def list_granted_for_patient(
        self, patient_id: str, *, limit: int = 10
    ) -> list[PatientConsent]:
        """Granted consents, newest first. Expiry is evaluated by the caller."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM patient_consents "
            "WHERE patient_id = %s AND status = %s ORDER BY created_at DESC LIMIT %s",
            (patient_id, ConsentStatus.GRANTED.value, limit),
        )
        rows = await cur.fetchall()
        return [_row_to_consent(r) for r in rows]

    async def list_for_patient(self, patient_id: str) -> list[PatientConsent]:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM patient_consents "
            "WHERE patient_id = %s ORDER BY created_at DESC",
            (patient_id,),
        )
        rows = await cur.fetchall()
        return [_row_to_consent(r) for r in rows]

    async def create(self, consent: PatientConsent) -> PatientConsent:
        await self._conn.execute(
            f"INSERT INTO patient_consents ({_COLUMNS}) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
            (
                consent.id,
                consent.patient_id,
                consent.consent_type.value,
                consent.status.value,
                Jsonb(scope_to_document(consent.scope)),
                Jsonb(categories_to_document(consent.data_categories)),
                consent.created_at,
                consent.updated_at,
                consent.created_by,
                consent.expires_at,
                consent.revoked_at,
                consent.revoked_by,
                consent.revoked_reason,
                consent.patient_signature,
                consent.witness_signature,
                consent.version,
            ),
        )
        return consent

    async def revoke(
        self, consent_id: str, *, revoked_by: str, reason: str, revoked_at: datetime
    ) -> None:
        await self._conn.execute(
            "UPDATE patient_consents SET status = %s, revoked_at = %s, revoked_by = %s, "
            "revoked_reason = %s, updated_at = %s, version = version + 1 WHERE id = %s",
            (
                ConsentStatus.REVOKED.value,
                revoked_at,
                revoked_by,
                reason,
                revoked_at,
                consent_id,
            ),
        )
