"""
Prometheus metrics for the advice engine.

Exposed through the ``/metrics`` ASGI app mounted in main.py.
"""

from prometheus_client import Counter, Histogram

ADVICE_REQUESTS = Counter(
    "advice_requests_total",
    "Advice requests by kind and outcome",
    ["kind", "outcome"],
)

PARAMS_SOURCE_USED = Counter(
    "advice_params_source_total",
    "Parameter fallback tier used per resolved target",
    ["target", "source"],
)

ADVICE_LATENCY = Histogram(
    "advice_latency_seconds",
    "End-to-end advice generation latency",
    ["kind"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
