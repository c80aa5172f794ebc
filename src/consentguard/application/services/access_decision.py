"""Access decision engine - RBAC plus patient consent, with risk classification."""

from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from consentguard.application.dto.access_request import AccessContext
from consentguard.application.dto.audit_event import AuditEvent
from consentguard.application.ports import AuditSink, PermissionChecker
from consentguard.application.services.consent_store import ConsentStore
from consentguard.application.services.violation_escalator import ViolationEscalator
from consentguard.domain.catalog import EMERGENCY_PERMISSIONS
from consentguard.domain.entities import AccessDecision, ComplianceViolation, Principal
from consentguard.domain.exceptions import StoreUnavailable
from consentguard.domain.value_objects import (
    ActionResult,
    ActionType,
    DecisionOutcome,
    RiskLevel,
    ViolationType,
)
from consentguard.infrastructure.observability import metrics
from consentguard.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

# Stands in for a missing principal so the audit gate never falls back to the
# signed-in identity.
ANONYMOUS = Principal(id="")


class AccessDecisionEngine:
    """Decides whether a principal may exercise a permission on patient data.

    Every call produces exactly one audit event. Denials caused by missing
    permissions or consent are also recorded as compliance violations.
    """

    def __init__(
        self,
        permission_checker: PermissionChecker,
        consent_store: ConsentStore,
        audit: AuditSink,
        escalator: ViolationEscalator,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._permissions = permission_checker
        self._consents = consent_store
        self._audit = audit
        self._escalator = escalator
        self._clock = clock or (lambda: datetime.now(UTC))

    async def check_access(
        self,
        principal: Principal | None,
        permission: str,
        context: AccessContext | None = None,
    ) -> AccessDecision:
        context = context or AccessContext()
        if principal is None or not principal.is_authenticated:
            decision = self._deny(None, permission, RiskLevel.HIGH, "Authentication required")
            self._record(decision, principal or ANONYMOUS, context)
            return decision

        try:
            decision = await self._decide(principal, permission, context)
        except StoreUnavailable:
            failed = self._deny(
                principal.id,
                permission,
                RiskLevel.HIGH,
                "Access could not be verified",
            )
            self._record(failed, principal, context)
            logger.exception("access_check_store_unavailable", permission=permission)
            raise

        self._record(decision, principal, context)
        return decision

    async def _decide(
        self, principal: Principal, permission: str, context: AccessContext
    ) -> AccessDecision:
        check = await self._permissions.has_permission(
            principal.id, permission, context.attributes
        )
        if not check.granted:
            await self._violation(
                ViolationType.UNAUTHORIZED_ACCESS,
                RiskLevel.HIGH,
                f"Permission {permission} denied: {check.reason}",
                principal,
                context,
            )
            return self._deny(
                principal.id, permission, RiskLevel.HIGH, f"Permission denied: {check.reason}"
            )

        if not context.patient_id:
            return AccessDecision(
                principal_id=principal.id,
                permission=permission,
                outcome=DecisionOutcome.ALLOW,
                risk_level=RiskLevel.LOW,
                audit_required=False,
                justification="Permission granted; no patient data involved",
            )

        request = context.consent_request()

        if context.emergency_override:
            if not await self._has_emergency_permission(principal.id, context):
                await self._violation(
                    ViolationType.UNAUTHORIZED_ACCESS,
                    RiskLevel.CRITICAL,
                    "Emergency override attempted without emergency permission",
                    principal,
                    context,
                )
                return self._deny(
                    principal.id,
                    permission,
                    RiskLevel.CRITICAL,
                    "Emergency override requires emergency access permission",
                )
            verification = self._consents.handle_emergency_access(request)
            logger.warning(
                "emergency_access_granted",
                principal_id=principal.id,
                patient_id=context.patient_id,
            )
            return AccessDecision(
                principal_id=principal.id,
                permission=permission,
                outcome=DecisionOutcome.ALLOW,
                risk_level=verification.risk_level,
                audit_required=True,
                justification=verification.justification,
            )

        lookup = await self._consents.lookup(context.patient_id, request)
        if lookup.consent is None:
            if lookup.active_count == 0:
                violation_type, severity = ViolationType.UNAUTHORIZED_ACCESS, RiskLevel.CRITICAL
                justification = "No active consent for patient"
            else:
                violation_type, severity = ViolationType.SCOPE_VIOLATION, RiskLevel.HIGH
                justification = "No consent covers the requested access"
            await self._violation(violation_type, severity, justification, principal, context)
            return self._deny(principal.id, permission, severity, justification)

        verification = self._consents.verify_scope(lookup.consent, request)
        if not verification.valid:
            await self._violation(
                ViolationType.SCOPE_VIOLATION,
                RiskLevel.HIGH,
                verification.justification,
                principal,
                context,
            )
            return AccessDecision(
                principal_id=principal.id,
                permission=permission,
                outcome=DecisionOutcome.DENY,
                risk_level=RiskLevel.HIGH,
                audit_required=True,
                justification=verification.justification,
                consent_id=lookup.consent.id,
            )

        return AccessDecision(
            principal_id=principal.id,
            permission=permission,
            outcome=DecisionOutcome.ALLOW,
            risk_level=verification.risk_level,
            audit_required=verification.audit_required,
            justification=verification.justification,
            consent_id=verification.consent_id,
            restrictions=list(verification.restrictions),
        )

    async def _has_emergency_permission(self, user_id: str, context: AccessContext) -> bool:
        for permission_id in EMERGENCY_PERMISSIONS:
            check = await self._permissions.has_permission(
                user_id, permission_id, context.attributes
            )
            if check.granted:
                return True
        return False

    @staticmethod
    def _deny(
        principal_id: str | None, permission: str, risk_level: RiskLevel, justification: str
    ) -> AccessDecision:
        return AccessDecision(
            principal_id=principal_id,
            permission=permission,
            outcome=DecisionOutcome.DENY,
            risk_level=risk_level,
            audit_required=True,
            justification=justification,
        )

    async def _violation(
        self,
        violation_type: ViolationType,
        severity: RiskLevel,
        description: str,
        principal: Principal,
        context: AccessContext,
    ) -> None:
        await self._escalator.record(
            ComplianceViolation(
                id=f"violation_{uuid4().hex}",
                type=violation_type,
                severity=severity,
                description=description,
                patient_id=context.patient_id,
                actor_id=principal.id,
                timestamp=self._clock(),
                data_categories=list(context.data_categories),
            )
        )

    def _record(
        self, decision: AccessDecision, principal: Principal, context: AccessContext
    ) -> None:
        metrics.access_decisions.labels(outcome=decision.outcome.value).inc()
        _, _, action = decision.permission.partition(":")
        resource_type = context.resource_type or ("patient" if context.patient_id else "resource")
        self._audit.enqueue(
            AuditEvent(
                action="data_access",
                resource_type=resource_type,
                resource_id=context.resource_id or context.patient_id or decision.permission,
                action_type=ActionType.from_action(action),
                action_result=(
                    ActionResult.SUCCESS if decision.allowed else ActionResult.FAILURE
                ),
                reason=decision.justification,
                # Denials and emergency access bypass the verified-email gate.
                critical=not decision.allowed or context.emergency_override,
                details=decision.to_details(),
            ),
            principal,
        )
        logger.info(
            "access_decision",
            principal_id=decision.principal_id,
            permission=decision.permission,
            outcome=decision.outcome.value,
            risk_level=decision.risk_level.value,
        )
