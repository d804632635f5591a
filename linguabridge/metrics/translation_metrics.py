"""Prometheus metrics for the detection, routing, caching and translation pipeline."""

from prometheus_client import Counter, Gauge, Histogram

script_detection_total = Counter(
    "linguabridge_script_detection_total",
    "Script detection outcomes by script and guessed language",
    ["script", "guess"],
)

route_decisions_total = Counter(
    "linguabridge_route_decisions_total",
    "Translation path chosen per request",
    ["path"],
)

translation_operation_duration_seconds = Histogram(
    "linguabridge_translation_operation_duration_seconds",
    "Duration of translation executions",
    ["path"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
)

translation_degraded_total = Counter(
    "linguabridge_translation_degraded_total",
    "Translations that degraded to the original text, by reason",
    ["reason"],
)

transliteration_total = Counter(
    "linguabridge_transliteration_total",
    "Transliteration attempts by outcome",
    ["outcome"],
)

cache_requests_total = Counter(
    "linguabridge_cache_requests_total",
    "Cache lookups by tier and result",
    ["tier", "result"],
)

cache_backend_errors_total = Counter(
    "linguabridge_cache_backend_errors_total",
    "Cache tier failures by tier and operation",
    ["tier", "operation"],
)

cache_inflight_joins_total = Counter(
    "linguabridge_cache_inflight_joins_total",
    "Requests that attached to an in-flight fetch instead of starting one",
)

model_state = Gauge(
    "linguabridge_model_state",
    "Translation model state (0=unloaded, 1=loading, 2=ready, 3=error)",
)

model_load_duration_seconds = Histogram(
    "linguabridge_model_load_duration_seconds",
    "Duration of translation model loads",
    ["result"],
    buckets=(1, 5, 10, 30, 60, 120, 300, 600),
)

model_inference_errors_total = Counter(
    "linguabridge_model_inference_errors_total",
    "Model inference failures by kind",
    ["kind"],
)
