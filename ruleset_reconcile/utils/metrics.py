from prometheus_client.core import (
    Counter,
    Gauge,
)

outcomes_total = Counter(
    name="ruleset_reconcile_outcomes_total",
    documentation="Reconciled targets by outcome",
    labelnames=["outcome"],
)

run_time = Gauge(
    name="ruleset_reconcile_last_run_seconds",
    documentation="Last run duration in seconds",
)

run_status = Gauge(
    name="ruleset_reconcile_last_run_status",
    documentation="Last run status, 0 if every target was applied or skipped",
)


def inc_outcome(outcome: str) -> None:
    outcomes_total.labels(outcome=outcome).inc()


def set_run_result(duration_seconds: float, failed: bool) -> None:
    run_time.set(duration_seconds)
    run_status.set(1 if failed else 0)
