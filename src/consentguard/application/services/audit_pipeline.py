"""Audit pipeline - gated enqueue, batched persistence, degraded-mode writes.

Events are gated when they are enqueued, not when they are flushed: the
principal must be authenticated, its email verified unless the event is
critical, and the pipeline enabled. Dropped events are counted per reason.

At most one batch write is in flight. A failed or timed-out batch is handled
by the configured ``AuditDurability`` policy; the default discards it so the
access path never waits on the audit store.
"""

import asyncio
from collections import deque
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import uuid4

from consentguard.application.dto.audit_event import AuditEvent
from consentguard.application.ports import IdentityProvider, UnitOfWorkFactory
from consentguard.domain.entities import Actor, AuditLogEntry, Principal
from consentguard.domain.value_objects import ActionType, AuditDurability
from consentguard.infrastructure.observability import metrics
from consentguard.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

MAX_BATCH_SIZE = 500


class PipelineState(StrEnum):
    IDLE = "idle"
    ENQUEUING = "enqueuing"
    FLUSHING = "flushing"


class DropReason(StrEnum):
    DISABLED = "disabled"
    UNAUTHENTICATED = "unauthenticated"
    UNVERIFIED = "unverified"


@dataclass
class AuditPipelineStats:
    """Per-instance counters, mirrored in Prometheus."""

    enqueued: int = 0
    persisted: int = 0
    discarded: int = 0
    failed_flushes: int = 0
    dropped: dict[str, int] = field(default_factory=dict)

    @property
    def dropped_total(self) -> int:
        return sum(self.dropped.values())


class AuditPipeline:
    """Append-only audit event queue flushed in atomic batches."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        identity_provider: IdentityProvider,
        *,
        batch_size: int = MAX_BATCH_SIZE,
        flush_interval: float = 5.0,
        followup_delay: float = 0.1,
        store_timeout: float = 10.0,
        durability: AuditDurability = AuditDurability.BEST_EFFORT,
        enabled: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._identity = identity_provider
        self._batch_size = min(batch_size, MAX_BATCH_SIZE)
        self._flush_interval = flush_interval
        self._followup_delay = followup_delay
        self._store_timeout = store_timeout
        self._durability = durability
        self._enabled = enabled
        self._clock = clock or (lambda: datetime.now(UTC))

        self._queue: deque[AuditLogEntry] = deque()
        self._flushing = False
        self._pending: asyncio.Task | None = None
        self._timer: asyncio.Task | None = None
        self.stats = AuditPipelineStats()

        self._identity.subscribe(self._on_principal_changed)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def durability(self) -> AuditDurability:
        return self._durability

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    @property
    def is_flushing(self) -> bool:
        return self._flushing

    @property
    def state(self) -> PipelineState:
        if self._flushing:
            return PipelineState.FLUSHING
        if self._queue:
            return PipelineState.ENQUEUING
        return PipelineState.IDLE

    # --- enqueue ---

    def enqueue(self, event: AuditEvent, principal: Principal | None = None) -> bool:
        """Accept event into the queue. Returns False when gating drops it."""
        if principal is None and self._identity.available:
            principal = self._identity.current_principal()

        reason = self._gate(event, principal)
        if reason is not None:
            self._record_drop(reason, event)
            return False

        self._queue.append(self._stamp(event, principal))
        self.stats.enqueued += 1
        metrics.audit_events_enqueued.inc()
        self._schedule_flush()
        return True

    def _gate(self, event: AuditEvent, principal: Principal | None) -> DropReason | None:
        if not self._enabled:
            return DropReason.DISABLED
        if principal is None or not principal.is_authenticated:
            return DropReason.UNAUTHENTICATED
        if not principal.email_verified and not event.critical:
            return DropReason.UNVERIFIED
        return None

    def _record_drop(self, reason: DropReason, event: AuditEvent) -> None:
        self.stats.dropped[reason.value] = self.stats.dropped.get(reason.value, 0) + 1
        metrics.audit_events_dropped.labels(reason=reason.value).inc()
        logger.debug("audit_event_dropped", reason=reason.value, action=event.action)

    def _stamp(self, event: AuditEvent, principal: Principal) -> AuditLogEntry:
        return AuditLogEntry(
            id=f"audit_{uuid4().hex}",
            timestamp=self._clock(),
            actor=Actor(user_id=principal.id, email=principal.email),
            action=event.action,
            resource_type=event.resource_type,
            resource_id=event.resource_id,
            action_type=event.action_type,
            action_result=event.action_result,
            correlation_id=event.correlation_id or f"corr_{uuid4().hex}",
            request_id=f"req_{uuid4().hex}",
            reason=event.reason,
            details=dict(event.details),
        )

    # --- flush ---

    def _schedule_flush(self, delay: float = 0.0) -> None:
        """Schedule a flush unless one is already scheduled or running."""
        if self._flushing:
            return
        pending = self._pending
        if pending is not None and not pending.done() and pending is not asyncio.current_task():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet: the timer picks the queue up once started.
            return
        self._pending = loop.create_task(self._flush_after(delay))

    async def _flush_after(self, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        await self.flush()

    async def flush(self) -> int:
        """Write one batch of up to ``batch_size`` entries. Returns entries persisted."""
        if self._flushing or not self._queue:
            return 0

        self._flushing = True
        size = min(self._batch_size, len(self._queue))
        batch = [self._queue.popleft() for _ in range(size)]
        try:
            async with asyncio.timeout(self._store_timeout):
                async with self._uow_factory() as uow:
                    await uow.audit_log.create_batch(batch)
        except Exception as exc:
            self._handle_failed_batch(batch, exc)
            return 0
        finally:
            self._flushing = False

        self.stats.persisted += len(batch)
        metrics.audit_events_persisted.inc(len(batch))
        logger.debug("audit_batch_written", size=len(batch), remaining=len(self._queue))

        if self._queue:
            self._schedule_flush(self._followup_delay)
        return len(batch)

    def _handle_failed_batch(self, batch: list[AuditLogEntry], exc: Exception) -> None:
        self.stats.failed_flushes += 1
        if self._durability == AuditDurability.REQUEUE and self._enabled:
            self._queue.extendleft(reversed(batch))
            logger.warning(
                "audit_batch_requeued",
                size=len(batch),
                error_type=type(exc).__name__,
            )
            return

        self.stats.discarded += len(batch)
        metrics.audit_events_discarded.inc(len(batch))
        logger.warning(
            "audit_degraded_mode",
            discarded=len(batch),
            remaining=len(self._queue),
            error_type=type(exc).__name__,
            error=str(exc),
        )

    async def wait_idle(self) -> None:
        """Wait for scheduled flushes, including their follow-ups, to finish."""
        while self._pending is not None and not self._pending.done():
            await self._pending

    async def drain(self) -> int:
        """Flush until the queue is empty or a batch fails."""
        total = 0
        await self.wait_idle()
        while self._queue:
            written = await self.flush()
            if written == 0:
                break
            total += written
            await self.wait_idle()
        return total

    # --- lifecycle ---

    def start(self) -> None:
        """Start the background flush timer on the running loop."""
        if self._timer is not None and not self._timer.done():
            return
        self._timer = asyncio.get_running_loop().create_task(self._run_timer())
        logger.info("audit_pipeline_started", interval=self._flush_interval)

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self._flush_interval)
            if self._queue and not self._flushing:
                await self.flush()

    async def stop(self) -> None:
        """Stop the timer and make a final best-effort drain."""
        if self._timer is not None:
            self._timer.cancel()
            with suppress(asyncio.CancelledError):
                await self._timer
            self._timer = None
        await self.drain()
        logger.info("audit_pipeline_stopped", remaining=len(self._queue))

    def disable(self) -> None:
        """Stop accepting events and clear the queue."""
        self._enabled = False
        cleared = len(self._queue)
        self._queue.clear()
        logger.info("audit_logging_disabled", cleared=cleared)

    def enable(self) -> None:
        self._enabled = True
        logger.info("audit_logging_enabled")

    def _on_principal_changed(self, principal: Principal | None) -> None:
        if principal is None:
            logger.info("principal_signed_out")
            return
        self.enqueue(
            AuditEvent(
                action="user_authentication",
                resource_type="user",
                resource_id=principal.id,
                action_type=ActionType.ACCESS,
                reason="User authenticated",
            ),
            principal,
        )
