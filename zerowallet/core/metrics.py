"""Prometheus metrics for the gas tank core.

Security Metrics:
- zerowallet_authorization_total: Signature checks by outcome
- zerowallet_gate_rejections_total: Relay requests refused, by gate

Technical Metrics:
- zerowallet_relayer_latency_seconds: Relayer call latency by operation
- zerowallet_relayer_failures_total: Relayer failures by operation
- zerowallet_gas_tank_handshake_total: Relayer handshakes by outcome
- zerowallet_gas_tanks_provisioned_total: Gas tanks funded through the relayer
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Security Metrics
# =============================================================================

authorization_total = Counter(
    "zerowallet_authorization_total",
    "Total number of signed nonce checks",
    ["outcome"],  # authorized, rejected, unregistered
)

gate_rejections = Counter(
    "zerowallet_gate_rejections_total",
    "Relay requests refused by an authorization gate",
    ["gate"],  # authorization, wallet, whitelist
)


# =============================================================================
# Technical Metrics
# =============================================================================

relayer_latency = Histogram(
    "zerowallet_relayer_latency_seconds",
    "Relayer call latency in seconds",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

relayer_failures = Counter(
    "zerowallet_relayer_failures_total",
    "Total number of relayer call failures",
    ["operation", "error_type"],  # timeout, error
)

handshake_total = Counter(
    "zerowallet_gas_tank_handshake_total",
    "Gas tank relayer handshakes by outcome",
    ["outcome"],  # ready, faulted
)

gas_tanks_provisioned = Counter(
    "zerowallet_gas_tanks_provisioned_total",
    "Total number of gas tanks funded through the relayer",
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_authorization(outcome: str) -> None:
    """Record the outcome of a signed nonce check."""
    authorization_total.labels(outcome=outcome).inc()


def record_gate_rejection(gate: str) -> None:
    """Record a request refused by an authorization gate."""
    gate_rejections.labels(gate=gate).inc()


@contextmanager
def track_relayer_latency(operation: str) -> Generator[None, None, None]:
    """Context manager to track relayer call latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        relayer_latency.labels(operation=operation).observe(duration)


def record_relayer_failure(operation: str, error_type: str) -> None:
    """Record a relayer call failure."""
    relayer_failures.labels(operation=operation, error_type=error_type).inc()


def record_handshake(ready: bool) -> None:
    """Record a relayer handshake outcome."""
    handshake_total.labels(outcome="ready" if ready else "faulted").inc()


def record_gas_tank_provisioned() -> None:
    """Record a gas tank funded through the relayer."""
    gas_tanks_provisioned.inc()


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST
