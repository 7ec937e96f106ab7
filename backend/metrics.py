"""
Prometheus metrics for the backend service.
"""

import os
from fastapi.responses import Response
from prometheus_client import Counter, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client.multiprocess import MultiProcessCollector
from prometheus_client.registry import CollectorRegistry


HTTP_REQUESTS = Counter(
    'backend_http_requests_total',
    'HTTP requests',
    ['method', 'path', 'status']
)


async def get_metrics():
    """FastAPI handler for /metrics endpoint."""
    if 'PROMETHEUS_MULTIPROC_DIR' in os.environ:
        # Multi-process mode (for production)
        registry = CollectorRegistry()
        MultiProcessCollector(registry)
        output = generate_latest(registry)
    else:
        # Single-process mode (for development)
        output = generate_latest()

    return Response(content=output, media_type=CONTENT_TYPE_LATEST)
