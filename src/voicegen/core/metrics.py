"""
Prometheus Metrics for voicegen.

Metrics Exposed:
    voicegen_requests_total               - Generation requests by outcome
    voicegen_request_duration_seconds     - End-to-end endpoint latency
    voicegen_provider_calls_total         - Provider calls by HTTP status
    voicegen_provider_duration_seconds    - Provider call latency
    voicegen_audio_bytes_total            - Audio bytes returned to callers
    voicegen_history_records              - Records currently held by the store

Outcomes follow the endpoint's terminal states:
    completed, rejected, failed_provider, failed_internal

Usage:
    from voicegen.core.metrics import metrics

    metrics.record_request("completed", duration=1.2, audio_bytes=48213)
    metrics.record_provider_call(status_code=200, duration=1.1)
    content, content_type = metrics.get_metrics_response()
"""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

OUTCOMES = ("completed", "rejected", "failed_provider", "failed_internal")


class VoiceMetrics:
    """
    Metrics collection backed by a private CollectorRegistry.

    A private registry keeps these series apart from anything else in
    the process and lets tests create fresh instances freely.
    """

    def __init__(self) -> None:
        self._registry = CollectorRegistry()

        self._requests_total = Counter(
            "voicegen_requests_total",
            "Voice generation requests by outcome",
            ["outcome"],
            registry=self._registry,
        )
        self._request_duration = Histogram(
            "voicegen_request_duration_seconds",
            "Voice generation endpoint duration in seconds",
            ["outcome"],
            buckets=(0.05, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
            registry=self._registry,
        )
        self._provider_calls = Counter(
            "voicegen_provider_calls_total",
            "Calls made to the synthesis provider by HTTP status",
            ["status_code"],
            registry=self._registry,
        )
        self._provider_duration = Histogram(
            "voicegen_provider_duration_seconds",
            "Synthesis provider call duration in seconds",
            buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
            registry=self._registry,
        )
        self._audio_bytes_total = Counter(
            "voicegen_audio_bytes_total",
            "Total audio bytes returned to callers",
            registry=self._registry,
        )
        self._history_records = Gauge(
            "voicegen_history_records",
            "Generation records held by the history store",
            registry=self._registry,
        )

        # Pre-create outcome series so they show up as 0
        for outcome in OUTCOMES:
            self._requests_total.labels(outcome=outcome)

    def record_request(self, outcome: str, duration: float, audio_bytes: int = 0) -> None:
        """
        Record a finished generation request.

        Args:
            outcome: One of OUTCOMES.
            duration: Endpoint duration in seconds.
            audio_bytes: Size of the returned audio (completed only).
        """
        self._requests_total.labels(outcome=outcome).inc()
        self._request_duration.labels(outcome=outcome).observe(duration)
        if audio_bytes > 0:
            self._audio_bytes_total.inc(audio_bytes)

    def record_provider_call(self, status_code: int | None, duration: float) -> None:
        """Record one provider call. status_code None means no HTTP response."""
        label = str(status_code) if status_code is not None else "none"
        self._provider_calls.labels(status_code=label).inc()
        self._provider_duration.observe(duration)

    def set_history_records(self, count: int) -> None:
        self._history_records.set(count)

    def get_metrics_response(self) -> tuple[bytes, str]:
        """
        Get metrics in Prometheus text format.

        Returns:
            Tuple of (content_bytes, content_type)
        """
        return generate_latest(self._registry), CONTENT_TYPE_LATEST


# Global singleton metrics instance
metrics = VoiceMetrics()
