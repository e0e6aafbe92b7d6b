#!/usr/bin/env python3
"""
Command-line interface for segmenting schematic images.

Usage:
    circuit-segmentation segment -i schematic.png
    circuit-segmentation segment -i schematic.png -o out --save-images
    circuit-segmentation version
"""

import json
from typing import Optional

import click

from . import __version__
from .core.config import SegmentationConfig
from .core.logging import setup_logging
from .core.pipeline import SegmentationPipeline


@click.group()
def cli():
    """Schematic segmentation CLI."""
    pass


@cli.command()
@click.option('--image', '-i', 'image_path', required=True,
              type=click.Path(dir_okay=False),
              help='Schematic image to segment')
@click.option('--output-dir', '-o', default=None,
              help='Output directory for the map, ROI and debug images')
@click.option('--save-images', is_flag=True, help='Write debug overlay images')
@click.option('--no-roi', is_flag=True, help='Do not write ROI images')
@click.option('--no-map', is_flag=True, help='Do not write the segmentation map file')
@click.option('--print-map', is_flag=True, help='Print the segmentation map to stdout')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
def segment(image_path: str, output_dir: Optional[str], save_images: bool,
            no_roi: bool, no_map: bool, print_map: bool, verbose: bool):
    """Segment a schematic image into components, connections, nodes and labels."""
    config = SegmentationConfig.from_env(output_dir=output_dir)
    if save_images:
        config.export.save_images = True
    if no_roi:
        config.export.write_roi = False
    if no_map:
        config.export.write_map = False

    setup_logging('DEBUG' if verbose else config.log_level)

    if verbose:
        click.echo(f"Segmenting {image_path}")
        click.echo(f"  Output: {config.export.output_dir}")
        click.echo(f"  Map: {config.export.write_map}")
        click.echo(f"  ROI: {config.export.write_roi}")
        click.echo(f"  Debug images: {config.export.save_images}")
        click.echo()

    pipeline = SegmentationPipeline(config)
    result = pipeline.process_image(image_path)
    if result is None:
        raise click.ClickException(f"Segmentation failed for {image_path}")

    click.echo(f"Components: {len(result.components)}")
    click.echo(f"Connections: {len(result.connections)}")
    click.echo(f"Nodes: {len(result.nodes)}")
    click.echo(f"Labels: {len(result.labels)}")

    if config.export.write_map:
        status = "written" if result.map_written else "FAILED"
        click.echo(f"Segmentation map: {status}")
    if config.export.write_roi:
        status = "written" if result.roi_written else "incomplete"
        click.echo(f"ROI images: {status}")

    if print_map:
        click.echo(json.dumps(result.segmentation_map, indent=4))


@cli.command()
def version():
    """Show the package version."""
    click.echo(__version__)


def main():
    cli()


if __name__ == '__main__':
    main()
