"""
Prometheus metrics for segmentation runs.
"""
import logging
import time
from contextlib import contextmanager
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest


class MetricsCollector:
    """Stage timing, element counts and failure counters."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self.logger = logging.getLogger(__name__)

        self.runs_total = Counter(
            'segmentation_runs_total',
            'Total segmentation runs by status',
            ['status'],
            registry=self.registry
        )

        self.stage_duration_seconds = Histogram(
            'segmentation_stage_duration_seconds',
            'Segmentation stage duration in seconds',
            ['stage'],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 5, 10],
            registry=self.registry
        )

        self.stage_failures_total = Counter(
            'segmentation_stage_failures_total',
            'Stages that ended without qualifying elements',
            ['stage'],
            registry=self.registry
        )

        self.elements_detected_total = Counter(
            'segmentation_elements_detected_total',
            'Circuit elements detected by kind',
            ['kind'],
            registry=self.registry
        )

        self.artifacts_written_total = Counter(
            'segmentation_artifacts_written_total',
            'Artifacts written by type and status',
            ['artifact_type', 'status'],
            registry=self.registry
        )

    @contextmanager
    def time_stage(self, stage: str):
        """Observe the duration of a stage."""
        start_time = time.time()
        try:
            yield
        finally:
            self.stage_duration_seconds.labels(stage=stage).observe(time.time() - start_time)

    def record_stage_failure(self, stage: str):
        self.stage_failures_total.labels(stage=stage).inc()

    def record_elements(self, kind: str, count: int):
        if count > 0:
            self.elements_detected_total.labels(kind=kind).inc(count)

    def record_artifact(self, artifact_type: str, success: bool):
        status = 'success' if success else 'error'
        self.artifacts_written_total.labels(artifact_type=artifact_type, status=status).inc()

    def record_run(self, success: bool):
        self.runs_total.labels(status='success' if success else 'failed').inc()

    def export(self) -> bytes:
        """Render metrics in Prometheus text format."""
        return generate_latest(self.registry)
