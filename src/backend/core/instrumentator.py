"""
HTTP request metrics for the /metrics endpoint.

Request counts and latencies come from prometheus-fastapi-instrumentator;
generation metrics are defined in core.metrics and share the default registry.
"""

from prometheus_fastapi_instrumentator import Instrumentator

instrumentator = Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/metrics", "/health"],
)
