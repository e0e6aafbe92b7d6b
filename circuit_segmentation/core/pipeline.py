"""
Core pipeline orchestration for schematic segmentation runs.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .config import SegmentationConfig
from .logging import StructuredLogger, generate_run_id, log_context, log_operation
from .metrics import MetricsCollector
from .schemas import Component, Connection, Label, Node, SegmentationResult
from ..preprocess.image import ImagePreprocessor, ImageReceiver
from ..schematics.components import ComponentDetector
from ..schematics.connections import ConnectionDetector
from ..schematics.export import SegmentationMapBuilder
from ..schematics.labels import LabelDetector
from ..schematics.overlay import OverlayWriter
from ..schematics.roi import RoiExporter
from ..schematics.segmenter import SchematicSegmenter
from ..vision.backend import OpenCVBackend, VisionBackend


@dataclass
class SegmentationContext:
    """Run-scoped state handed from one stage to the next."""
    image_path: str
    image_initial: Optional[np.ndarray] = None
    image_preprocessed: Optional[np.ndarray] = None
    components: List[Component] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)
    nodes: List[Node] = field(default_factory=list)
    labels: List[Label] = field(default_factory=list)
    segmentation_map: Dict[str, Any] = field(default_factory=dict)
    map_written: bool = False
    roi_written: bool = False


class SegmentationPipeline:
    """
    Orchestrates a complete segmentation run for one schematic image.

    Detection stages stop the run at their first failure. Label detection
    is optional, and artifact writing never aborts a run: its outcome is
    reported on the result instead.
    """

    def __init__(
        self,
        config: Optional[SegmentationConfig] = None,
        backend: Optional[VisionBackend] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        self.config = config or SegmentationConfig()
        self.backend = backend or OpenCVBackend()
        self.metrics = metrics or MetricsCollector()
        self.logger = StructuredLogger(__name__)

        output_dir = Path(self.config.export.output_dir)
        self.output_dir = output_dir

        # Initialize stages
        self.image_receiver = ImageReceiver(self.backend)
        self.image_preprocessor = ImagePreprocessor(self.config.preprocessing)
        self.component_detector = ComponentDetector(self.backend, self.config.components)
        self.connection_detector = ConnectionDetector(self.backend, self.config.connections)
        self.segmenter = SchematicSegmenter(self.backend, self.config.segmenter)
        self.label_detector = LabelDetector(self.backend, self.config.labels)
        self.map_builder = SegmentationMapBuilder(self.config.segmenter.port_position_precision)
        self.roi_exporter = RoiExporter(self.backend, output_dir)
        self.overlay_writer = OverlayWriter(self.backend, output_dir)

    def process_image(self, image_path: str) -> Optional[SegmentationResult]:
        """
        Segment the schematic stored at ``image_path``.

        Returns:
            The segmented circuit, or None when a detection stage failed
        """
        with log_context(run_id=generate_run_id(), image_path=str(image_path)):
            context = SegmentationContext(image_path=str(image_path))
            with log_operation(self.logger, "process_image"):
                success = self._run(context)

            self.metrics.record_run(success)
            if not success:
                self.logger.warning("Segmentation run failed")
                return None

            return SegmentationResult(
                components=context.components,
                connections=context.connections,
                nodes=context.nodes,
                labels=context.labels,
                segmentation_map=context.segmentation_map,
                map_written=context.map_written,
                roi_written=context.roi_written,
            )

    def _run(self, context: SegmentationContext) -> bool:
        required = [
            ("receive_image", self._receive_image),
            ("preprocess_image", self._preprocess_image),
            ("detect_components", self._detect_components),
            ("detect_connections", self._detect_connections),
            ("detect_nodes", self._detect_nodes),
            ("detect_ports", self._detect_ports),
            ("update_components", self._update_components),
        ]
        for stage, handler in required:
            if not self._run_stage(stage, handler, context):
                return False

        # Labels are optional, the circuit is complete without them
        self._run_stage("detect_labels", self._detect_labels, context)

        self._run_stage("generate_map", self._generate_map, context)
        if self.config.export.write_roi:
            self._run_stage("export_roi", self._export_roi, context)

        return True

    def _run_stage(self, stage: str, handler: Callable[[SegmentationContext], bool],
                   context: SegmentationContext) -> bool:
        with self.metrics.time_stage(stage), log_operation(self.logger, stage):
            success = handler(context)

        self.logger.log_stage_result(
            stage, success,
            component_count=len(context.components),
            connection_count=len(context.connections),
            node_count=len(context.nodes),
            label_count=len(context.labels),
        )
        if not success:
            self.metrics.record_stage_failure(stage)
        return success

    def _receive_image(self, context: SegmentationContext) -> bool:
        image = self.image_receiver.receive_image(context.image_path)
        if image is None:
            return False

        context.image_initial = self.image_preprocessor.resize_image(image)
        return True

    def _preprocess_image(self, context: SegmentationContext) -> bool:
        context.image_preprocessed = self.image_preprocessor.preprocess_image(context.image_initial)
        return True

    def _detect_components(self, context: SegmentationContext) -> bool:
        if not self.component_detector.detect_components(context.image_preprocessed):
            return False

        context.components = self.component_detector.components
        self.metrics.record_elements("component", len(context.components))
        if self._save_images():
            self.overlay_writer.write_components(context.image_initial, context.components)
        return True

    def _detect_connections(self, context: SegmentationContext) -> bool:
        return self.connection_detector.detect_connections(
            context.image_preprocessed, context.components
        )

    def _detect_nodes(self, context: SegmentationContext) -> bool:
        success = self.connection_detector.detect_nodes_update_connections(
            context.image_preprocessed, context.components
        )
        context.connections = self.connection_detector.connections
        context.nodes = self.connection_detector.nodes
        if not success:
            return False

        self.metrics.record_elements("connection", len(context.connections))
        self.metrics.record_elements("node", len(context.nodes))
        if self._save_images():
            self.overlay_writer.write_connections(
                context.image_initial, context.connections, context.nodes
            )
        return True

    def _detect_ports(self, context: SegmentationContext) -> bool:
        self.segmenter.detect_component_connections(
            context.image_preprocessed, context.components, context.connections, context.nodes
        )
        context.components = self.segmenter.components
        context.connections = self.segmenter.connections
        context.nodes = self.segmenter.nodes
        if self._save_images():
            self.overlay_writer.write_ports(context.image_initial, context.components)
        return True

    def _update_components(self, context: SegmentationContext) -> bool:
        success = self.segmenter.update_detected_components()
        context.components = self.segmenter.components
        return success

    def _detect_labels(self, context: SegmentationContext) -> bool:
        if not self.label_detector.detect_labels(
            context.image_preprocessed, context.components, context.connections
        ):
            return False

        self.segmenter.associate_labels(context.image_preprocessed, self.label_detector.labels)
        context.labels = self.segmenter.labels
        self.metrics.record_elements("label", len(context.labels))
        if self._save_images():
            self.overlay_writer.write_labels(context.image_initial, context.labels)
        return True

    def _generate_map(self, context: SegmentationContext) -> bool:
        if not self.map_builder.generate_segmentation_map(
            context.components, context.connections, context.nodes
        ):
            return False

        context.segmentation_map = self.map_builder.segmentation_map
        if not self.config.export.write_map:
            return True

        self._ensure_output_dir()
        file_path = self.output_dir / self.config.export.segmentation_map_file
        context.map_written = self.map_builder.write_json_file(file_path)
        self.metrics.record_artifact("segmentation_map", context.map_written)
        return context.map_written

    def _export_roi(self, context: SegmentationContext) -> bool:
        self._ensure_output_dir()
        components_ok = self.roi_exporter.generate_roi_components(
            context.image_initial, context.components
        )
        labels_ok = self.roi_exporter.generate_roi_labels(
            context.image_initial, context.components, context.connections, context.nodes
        )
        context.roi_written = components_ok and labels_ok
        self.metrics.record_artifact("roi", context.roi_written)
        return context.roi_written

    def _save_images(self) -> bool:
        if not self.config.export.save_images:
            return False
        self._ensure_output_dir()
        return True

    def _ensure_output_dir(self):
        self.output_dir.mkdir(parents=True, exist_ok=True)
