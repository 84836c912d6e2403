"""
Prometheus metrics for the acquisition pipeline.

Metrics are registered once at import on the default registry, which is what
the /metrics route exposes.
"""

from prometheus_client import Counter, Gauge, Histogram

PROBE_SUBMISSIONS = Counter(
    "latency_probe_submissions_total", "Measurements submitted to the probe backend"
)
PROBE_OUTCOMES = Counter(
    "latency_probe_outcomes_total",
    "Settled probes by outcome",
    ["outcome"],  # resolved | timeout | error | fallback | coalesced
)
PROBES_IN_FLIGHT = Gauge("latency_probes_in_flight", "Probes currently unsettled")
ROUND_DURATION = Histogram(
    "latency_round_duration_seconds",
    "Wall-clock duration of acquisition rounds",
    ["mode"],
    buckets=(0.01, 0.1, 0.5, 1, 5, 10, 30, 60, 120, 300),
)
ROUND_SAMPLES = Counter(
    "latency_round_samples_total", "Samples produced by rounds", ["provenance"]
)
ROUND_DROPPED = Counter(
    "latency_round_dropped_pairs_total", "Pairs dropped from real-only rounds"
)
SUBSCRIBERS = Gauge("latency_subscribers", "Registered snapshot subscribers")
METHOD_DURATION = Histogram(
    "latency_method_duration_seconds",
    "Duration of profiled methods",
    ["method"],
)
