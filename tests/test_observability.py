"""
Tests for structured logging and metrics.
"""
import json
import logging
from unittest.mock import Mock

import pytest

from circuit_segmentation.core.logging import (
    CorrelationFormatter,
    StructuredLogger,
    generate_run_id,
    get_run_id,
    log_context,
    log_operation,
    setup_logging,
)
from circuit_segmentation.core.metrics import MetricsCollector


def make_record(message="Stage detect_components succeeded", **extra):
    record = logging.LogRecord(
        name="circuit_segmentation.core.pipeline", level=logging.INFO,
        pathname=__file__, lineno=10, msg=message, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationFormatter:

    def test_json_with_run_context(self):
        with log_context(run_id="run-1", image_path="schematic.png"):
            output = CorrelationFormatter().format(make_record(component_count=3))

        entry = json.loads(output)
        assert entry["level"] == "INFO"
        assert entry["message"] == "Stage detect_components succeeded"
        assert entry["run_id"] == "run-1"
        assert entry["image_path"] == "schematic.png"
        assert entry["extra"] == {"component_count": 3}

    def test_without_context(self):
        entry = json.loads(CorrelationFormatter().format(make_record()))
        assert entry["run_id"] is None
        assert "extra" not in entry


class TestLogContext:

    def test_context_is_reset(self):
        run_id = generate_run_id()
        with log_context(run_id=run_id):
            assert get_run_id() == run_id
        assert get_run_id() is None

    def test_reset_on_error(self):
        with pytest.raises(RuntimeError):
            with log_context(run_id="run-2"):
                raise RuntimeError("boom")
        assert get_run_id() is None


class TestLogOperation:

    def test_success(self):
        logger = Mock(spec=StructuredLogger)

        with log_operation(logger, "detect_labels", stage="labels"):
            pass

        logger.log_operation_start.assert_called_once_with("detect_labels", stage="labels")
        args, kwargs = logger.log_operation_success.call_args
        assert args[0] == "detect_labels"
        assert args[1] >= 0
        logger.log_operation_error.assert_not_called()

    def test_error_is_logged_and_raised(self):
        logger = Mock(spec=StructuredLogger)

        with pytest.raises(ValueError):
            with log_operation(logger, "generate_map"):
                raise ValueError("bad element")

        args, _ = logger.log_operation_error.call_args
        assert args[0] == "generate_map"
        assert isinstance(args[1], ValueError)
        logger.log_operation_success.assert_not_called()

    def test_stage_result_levels(self, caplog):
        logger = StructuredLogger("circuit_segmentation.test")

        with caplog.at_level(logging.INFO, logger="circuit_segmentation.test"):
            logger.log_stage_result("detect_nodes", True, node_count=1)
            logger.log_stage_result("detect_labels", False, label_count=0)

        assert [r.levelname for r in caplog.records] == ["INFO", "WARNING"]
        assert caplog.records[1].getMessage() == "Stage detect_labels failed"
        assert caplog.records[0].node_count == 1


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:

    def test_structured_handler(self, root_logger):
        setup_logging("DEBUG")

        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, CorrelationFormatter)

    def test_unknown_level_falls_back_to_info(self, root_logger):
        setup_logging("chatty")
        assert root_logger.level == logging.INFO


class TestMetricsCollector:

    def test_counters(self):
        metrics = MetricsCollector()

        metrics.record_run(True)
        metrics.record_run(False)
        metrics.record_stage_failure("detect_components")
        metrics.record_elements("component", 4)
        metrics.record_elements("node", 0)
        metrics.record_artifact("segmentation_map", True)

        value = metrics.registry.get_sample_value
        assert value("segmentation_runs_total", {"status": "success"}) == 1.0
        assert value("segmentation_runs_total", {"status": "failed"}) == 1.0
        assert value("segmentation_stage_failures_total", {"stage": "detect_components"}) == 1.0
        assert value("segmentation_elements_detected_total", {"kind": "component"}) == 4.0
        assert value("segmentation_elements_detected_total", {"kind": "node"}) is None
        assert value(
            "segmentation_artifacts_written_total",
            {"artifact_type": "segmentation_map", "status": "success"}
        ) == 1.0

    def test_time_stage(self):
        metrics = MetricsCollector()

        with metrics.time_stage("preprocess_image"):
            pass

        count = metrics.registry.get_sample_value(
            "segmentation_stage_duration_seconds_count", {"stage": "preprocess_image"}
        )
        assert count == 1.0

    def test_collectors_are_isolated(self):
        first = MetricsCollector()
        second = MetricsCollector()
        first.record_run(True)

        assert second.registry.get_sample_value("segmentation_runs_total", {"status": "success"}) is None

    def test_export(self):
        metrics = MetricsCollector()
        metrics.record_run(True)

        output = metrics.export()

        assert isinstance(output, bytes)
        assert b'segmentation_runs_total{status="success"} 1.0' in output
