"""Prometheus metrics for the crawl queue and snapshot writer."""
from __future__ import annotations

from prometheus_client import Counter, Histogram


URL_SUBMISSIONS_TOTAL = Counter(
    "dbgw_url_submissions_total",
    "URL submissions by result",
    ["result"],
)

SNAPSHOT_WRITES_TOTAL = Counter(
    "dbgw_snapshot_writes_total",
    "Snapshot writes by outcome (inserted / duplicate)",
    ["outcome"],
)

CRAWL_TICKS_TOTAL = Counter(
    "dbgw_crawl_ticks_total",
    "Scheduler ticks by result",
    ["result"],
)

CRAWL_TICK_SECONDS = Histogram(
    "dbgw_crawl_tick_seconds",
    "Wall time of one scheduler tick",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 20, 40, 60),
)
