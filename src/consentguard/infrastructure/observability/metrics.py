"""Prometheus metrics for the compliance core."""

from prometheus_client import Counter

audit_events_enqueued = Counter(
    "consentguard_audit_events_enqueued_total",
    "Audit events accepted into the queue",
)

audit_events_dropped = Counter(
    "consentguard_audit_events_dropped_total",
    "Audit events dropped by enqueue gating",
    ["reason"],
)

audit_events_persisted = Counter(
    "consentguard_audit_events_persisted_total",
    "Audit events written to the audit log",
)

audit_events_discarded = Counter(
    "consentguard_audit_events_discarded_total",
    "Audit events lost with a failed batch",
)

access_decisions = Counter(
    "consentguard_access_decisions_total",
    "Access decisions by outcome",
    ["outcome"],
)

violations_recorded = Counter(
    "consentguard_violations_recorded_total",
    "Compliance violations by type and severity",
    ["type", "severity"],
)
