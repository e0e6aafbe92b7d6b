"""
Schematic segmentation stages: component, connection and label detection,
port detection and label attribution, segmentation map and ROI export.
"""
