"""
Tests for ROI export.
"""
from circuit_segmentation.core.schemas import (
    BoundingBox,
    Component,
    Connection,
    GlobalPosition,
    Label,
    Node,
)
from circuit_segmentation.schematics.roi import RoiExporter


def labelled(element, *boxes):
    for box in boxes:
        label = Label(owner_id=element.id, bounding_box=box)
        element.labels.append(label)
        element.label = label
    return element


class TestRoiExporter:

    def test_component_file_names(self, backend, color_image, tmp_path):
        components = [
            Component(bounding_box=BoundingBox(x=0, y=0, width=20, height=20)),
            Component(bounding_box=BoundingBox(x=50, y=50, width=20, height=20)),
        ]
        exporter = RoiExporter(backend, tmp_path)

        assert exporter.generate_roi_components(color_image, components) is True
        assert backend.written == [
            str(tmp_path / f"roi_component_{components[0].id}.png"),
            str(tmp_path / f"roi_component_{components[1].id}.png"),
        ]

    def test_label_ordinals_per_owner(self, backend, color_image, tmp_path):
        component = labelled(Component(), BoundingBox(x=0, y=0, width=5, height=5))
        connection = labelled(
            Connection(),
            BoundingBox(x=10, y=10, width=5, height=5),
            BoundingBox(x=20, y=10, width=5, height=5),
        )
        node = labelled(Node(position=GlobalPosition(x=100, y=100)), BoundingBox(x=90, y=90, width=5, height=5))
        exporter = RoiExporter(backend, tmp_path)

        assert exporter.generate_roi_labels(color_image, [component], [connection], [node]) is True
        assert backend.written_names() == [
            f"roi_label_{component.id}_1.png",
            f"roi_label_{connection.id}_1.png",
            f"roi_label_{connection.id}_2.png",
            f"roi_label_{node.id}_1.png",
        ]

    def test_crop_failure_does_not_stop_export(self, backend, color_image, tmp_path):
        outside = Component(bounding_box=BoundingBox(x=290, y=190, width=20, height=20))
        inside = Component(bounding_box=BoundingBox(x=0, y=0, width=20, height=20))
        exporter = RoiExporter(backend, tmp_path)

        assert exporter.generate_roi_components(color_image, [outside, inside]) is False
        assert backend.written_names() == [f"roi_component_{inside.id}.png"]

    def test_write_failure(self, backend, color_image, tmp_path):
        first = Component(bounding_box=BoundingBox(x=0, y=0, width=20, height=20))
        second = Component(bounding_box=BoundingBox(x=30, y=0, width=20, height=20))
        backend.failing_writes = {f"roi_component_{first.id}.png"}
        exporter = RoiExporter(backend, tmp_path)

        assert exporter.generate_roi_components(color_image, [first, second]) is False
        assert backend.written_names() == [f"roi_component_{second.id}.png"]

    def test_no_labels(self, backend, color_image, tmp_path):
        exporter = RoiExporter(backend, tmp_path)
        assert exporter.generate_roi_labels(color_image, [Component()], [Connection()], []) is True
        assert backend.written == []
