"""
Configuration for the segmentation pipeline.

Every threshold and kernel size used by the stages lives here so the
detectors can be tuned without touching their code. Values can be overridden
through ``CS_*`` environment variables via ``SegmentationConfig.from_env``.
"""
import os
from dataclasses import dataclass, field
from typing import Optional


def _check_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


def _check_odd(name: str, value: int) -> None:
    if value <= 0 or value % 2 == 0:
        raise ValueError(f"{name} must be a positive odd number, got {value}")


@dataclass
class ComponentDetectionConfig:
    """Blob isolation and bounding box settings for components."""
    min_area: float = 200.0
    width_increase: int = 20
    height_increase: int = 20
    morph_close_kernel_size: int = 11
    morph_close_iterations: int = 4
    morph_open_kernel_size: int = 3
    morph_open_iterations: int = 1

    def __post_init__(self):
        _check_positive("min_area", self.min_area)
        _check_positive("morph_close_kernel_size", self.morph_close_kernel_size)
        _check_positive("morph_open_kernel_size", self.morph_open_kernel_size)
        if self.width_increase < 0 or self.height_increase < 0:
            raise ValueError("bounding box increases cannot be negative")


@dataclass
class ConnectionDetectionConfig:
    """Wire extraction and junction synthesis settings."""
    min_length: float = 20.0
    # Margin used to test wire points against component boxes.
    width_increase: int = 2
    height_increase: int = 2

    def __post_init__(self):
        _check_positive("min_length", self.min_length)
        if self.width_increase < 0 or self.height_increase < 0:
            raise ValueError("intersection margins cannot be negative")


@dataclass
class LabelDetectionConfig:
    """Leftover-ink isolation settings for labels."""
    min_area: float = 50.0
    width_increase: int = 2
    height_increase: int = 2
    morph_close_kernel_size: int = 9
    morph_close_iterations: int = 3
    morph_open_kernel_size: int = 3
    morph_open_iterations: int = 1

    def __post_init__(self):
        _check_positive("min_area", self.min_area)
        _check_positive("morph_close_kernel_size", self.morph_close_kernel_size)
        _check_positive("morph_open_kernel_size", self.morph_open_kernel_size)


@dataclass
class SegmenterConfig:
    """Port detection and label attribution margins."""
    port_width_increase: int = 2
    port_height_increase: int = 2
    connection_box_increase: int = 2
    # Nodes are single points; this gives them an extent comparable to wires.
    node_box_increase: int = 20
    port_position_precision: int = 1

    def __post_init__(self):
        increases = (self.port_width_increase, self.port_height_increase,
                     self.connection_box_increase, self.node_box_increase)
        if any(increase < 0 for increase in increases):
            raise ValueError("segmenter box increases cannot be negative")
        if self.port_position_precision < 0:
            raise ValueError(
                f"port_position_precision cannot be negative, got {self.port_position_precision}"
            )


@dataclass
class PreprocessingConfig:
    """Filtering applied to the received image before segmentation."""
    resize_enabled: bool = True
    max_dimension: int = 800
    blur_kernel_size: int = 3
    threshold_max_value: int = 255
    threshold_block_size: int = 19
    threshold_constant: float = 2.0
    dilate_kernel_size: int = 3
    dilate_iterations: int = 1
    thinning_enabled: bool = True

    def __post_init__(self):
        _check_positive("max_dimension", self.max_dimension)
        _check_odd("blur_kernel_size", self.blur_kernel_size)
        _check_odd("threshold_block_size", self.threshold_block_size)
        _check_positive("dilate_kernel_size", self.dilate_kernel_size)


@dataclass
class ExportConfig:
    """Artifacts written at the end of a run."""
    output_dir: str = "."
    segmentation_map_file: str = "segmentation_map.json"
    write_map: bool = True
    write_roi: bool = True
    save_images: bool = False


@dataclass
class SegmentationConfig:
    """Global pipeline configuration."""
    components: ComponentDetectionConfig = field(default_factory=ComponentDetectionConfig)
    connections: ConnectionDetectionConfig = field(default_factory=ConnectionDetectionConfig)
    labels: LabelDetectionConfig = field(default_factory=LabelDetectionConfig)
    segmenter: SegmenterConfig = field(default_factory=SegmenterConfig)
    preprocessing: PreprocessingConfig = field(default_factory=PreprocessingConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, output_dir: Optional[str] = None) -> "SegmentationConfig":
        """Load configuration from environment variables."""
        return cls(
            components=ComponentDetectionConfig(
                min_area=float(os.getenv("CS_COMPONENT_MIN_AREA", "200")),
                width_increase=int(os.getenv("CS_COMPONENT_WIDTH_INCREASE", "20")),
                height_increase=int(os.getenv("CS_COMPONENT_HEIGHT_INCREASE", "20")),
            ),
            connections=ConnectionDetectionConfig(
                min_length=float(os.getenv("CS_CONNECTION_MIN_LENGTH", "20")),
            ),
            labels=LabelDetectionConfig(
                min_area=float(os.getenv("CS_LABEL_MIN_AREA", "50")),
            ),
            preprocessing=PreprocessingConfig(
                resize_enabled=os.getenv("CS_RESIZE", "true").lower() == "true",
                max_dimension=int(os.getenv("CS_MAX_DIMENSION", "800")),
                thinning_enabled=os.getenv("CS_THINNING", "true").lower() == "true",
            ),
            export=ExportConfig(
                output_dir=output_dir or os.getenv("CS_OUTPUT_DIR", "."),
                write_map=os.getenv("CS_WRITE_MAP", "true").lower() == "true",
                write_roi=os.getenv("CS_WRITE_ROI", "true").lower() == "true",
                save_images=os.getenv("CS_SAVE_IMAGES", "false").lower() == "true",
            ),
            log_level=os.getenv("CS_LOG_LEVEL", "INFO"),
        )
