"""Application entry point and composition root."""

import asyncio
from dataclasses import dataclass
from datetime import timedelta

from psycopg_pool import AsyncConnectionPool

from consentguard import __version__
from consentguard.application.ports import Cipher, IdentityProvider
from consentguard.application.services.access_decision import AccessDecisionEngine
from consentguard.application.services.audit_pipeline import AuditPipeline
from consentguard.application.services.consent_store import ConsentStore
from consentguard.application.services.permission_catalog import PermissionCatalog
from consentguard.application.services.violation_escalator import ViolationEscalator
from consentguard.application.use_cases.consent.consent_summary import ConsentSummaryUseCase
from consentguard.application.use_cases.consent.create_consent import CreateConsentUseCase
from consentguard.application.use_cases.consent.get_consent import GetConsentUseCase
from consentguard.application.use_cases.consent.revoke_consent import RevokeConsentUseCase
from consentguard.application.use_cases.reporting.compliance_report import (
    ComplianceReportUseCase,
)
from consentguard.config import Settings, get_settings
from consentguard.infrastructure.alerting.security_alert_channel import (
    StoredSecurityAlertChannel,
)
from consentguard.infrastructure.auth.keycloak_provider import (
    KeycloakIdentityProvider,
    UnavailableIdentityProvider,
)
from consentguard.infrastructure.crypto.fernet_cipher import FernetCipher, UnavailableCipher
from consentguard.infrastructure.observability.logging import get_logger, setup_logging
from consentguard.infrastructure.persistence.postgres.connection import create_pool
from consentguard.infrastructure.persistence.postgres.unit_of_work import (
    create_uow_factory,
)

logger = get_logger(__name__)


@dataclass
class ComplianceCore:
    """Wired components. Each instance owns its caches and audit queue."""

    pool: AsyncConnectionPool
    identity: IdentityProvider
    cipher: Cipher
    catalog: PermissionCatalog
    consents: ConsentStore
    audit: AuditPipeline
    escalator: ViolationEscalator
    engine: AccessDecisionEngine
    create_consent: CreateConsentUseCase
    get_consent: GetConsentUseCase
    revoke_consent: RevokeConsentUseCase
    consent_summary: ConsentSummaryUseCase
    compliance_report: ComplianceReportUseCase

    async def start(self) -> None:
        """Open the pool, load the catalog and start the audit timer."""
        await self.pool.open()
        await self.catalog.load_or_bootstrap()
        self.audit.start()

    async def stop(self) -> None:
        await self.audit.stop()
        await self.pool.close()


def create_compliance_core(settings: Settings | None = None) -> ComplianceCore:
    """Composition root - build the compliance core with all dependencies."""
    settings = settings or get_settings()
    pool = create_pool(settings.database_url, timeout=settings.store_timeout_seconds)
    uow_factory = create_uow_factory(pool)

    identity: IdentityProvider = (
        KeycloakIdentityProvider(
            server_url=settings.keycloak_url,
            realm=settings.keycloak_realm,
            client_id=settings.keycloak_client_id,
            client_secret=settings.keycloak_client_secret,
        )
        if settings.keycloak_client_secret
        else UnavailableIdentityProvider()
    )
    cipher: Cipher = (
        FernetCipher(settings.consent_encryption_key)
        if settings.consent_encryption_key
        else UnavailableCipher()
    )

    audit = AuditPipeline(
        uow_factory,
        identity,
        batch_size=settings.audit_batch_size,
        flush_interval=settings.audit_flush_interval_seconds,
        followup_delay=settings.audit_followup_delay_seconds,
        store_timeout=settings.store_timeout_seconds,
        durability=settings.audit_durability,
        enabled=settings.audit_enabled,
    )
    catalog = PermissionCatalog(uow_factory, audit)
    consents = ConsentStore(
        uow_factory,
        audit,
        cache_ttl=timedelta(seconds=settings.consent_cache_ttl_seconds),
        fetch_limit=settings.consent_fetch_limit,
    )
    escalator = ViolationEscalator(uow_factory, StoredSecurityAlertChannel(uow_factory))
    engine = AccessDecisionEngine(catalog, consents, audit, escalator)

    return ComplianceCore(
        pool=pool,
        identity=identity,
        cipher=cipher,
        catalog=catalog,
        consents=consents,
        audit=audit,
        escalator=escalator,
        engine=engine,
        create_consent=CreateConsentUseCase(uow_factory, catalog, cipher, audit),
        get_consent=GetConsentUseCase(uow_factory, catalog, cipher, audit),
        revoke_consent=RevokeConsentUseCase(catalog, consents),
        consent_summary=ConsentSummaryUseCase(uow_factory, catalog),
        compliance_report=ComplianceReportUseCase(uow_factory, catalog),
    )


async def bootstrap(settings: Settings | None = None) -> None:
    """Seed the built-in catalog and exit."""
    core = create_compliance_core(settings)
    await core.start()
    try:
        logger.info(
            "catalog_ready",
            permissions=len(core.catalog.all_permissions()),
            roles=len(core.catalog.all_roles()),
        )
    finally:
        await core.stop()


def main() -> None:
    """CLI entry point."""
    print(f"ConsentGuard v{__version__}")
    setup_logging()
    asyncio.run(bootstrap())
