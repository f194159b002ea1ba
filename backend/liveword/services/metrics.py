"""Prometheus metrics instrumentation for the transcription relay.

Exposes metrics for monitoring sessions, STT stream health and the
translation fan-out. Metrics are exposed via HTTP on port 8001
(configurable) when METRICS_ENABLED is set.

Metrics exported:
- liveword_active_sessions: Gauge of connected client sessions
- liveword_active_streams: Gauge of live STT streams
- liveword_stream_restarts_total: Counter of duration-limit restarts
- liveword_stream_errors_total: Counter of fatal STT stream errors
- liveword_transcripts_total: Counter of transcripts forwarded to clients
- liveword_fanout_deliveries_total: Counter of fan-out branch outcomes
- liveword_provider_latency_seconds: Histogram of provider call latency

Usage:
    from liveword.services.metrics import start_metrics_server, stream_restarts

    start_metrics_server(port=8001)
    stream_restarts.inc()
"""

from prometheus_client import Histogram, Counter, Gauge, start_http_server
import logging

logger = logging.getLogger(__name__)

active_sessions_gauge = Gauge(
    'liveword_active_sessions',
    'Number of connected client sessions'
)

active_streams_gauge = Gauge(
    'liveword_active_streams',
    'Number of currently live STT streams'
)

stream_restarts = Counter(
    'liveword_stream_restarts_total',
    'STT streams reopened after hitting the provider duration limit'
)

stream_errors = Counter(
    'liveword_stream_errors_total',
    'STT streams terminated by a provider error'
)

transcripts_forwarded = Counter(
    'liveword_transcripts_total',
    'Transcripts forwarded to clients',
    labelnames=['finality']  # finality: interim, final, forced
)

fanout_deliveries = Counter(
    'liveword_fanout_deliveries_total',
    'Fan-out branch outcomes per stage',
    labelnames=['stage', 'status']  # stage: translation, synthesis; status: sent, empty, error, skipped
)

provider_latency = Histogram(
    'liveword_provider_latency_seconds',
    'Time spent waiting on Translate / TTS providers',
    labelnames=['provider']
)


def start_metrics_server(port: int = 8001):
    """Start Prometheus metrics HTTP server."""
    try:
        start_http_server(port)
        logger.info(f"✅ Metrics server started on port {port}")
    except Exception as e:
        logger.error(f"❌ Failed to start metrics server: {e}")
