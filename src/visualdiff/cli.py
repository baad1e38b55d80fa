#!/usr/bin/env python3
"""
Convenience entry points for visualdiff
Compare image files on disk and read or write JSON reports without
building an ImageComparator by hand.
"""

from .core import (
    ComparisonMode,
    ImageComparator,
    VisualDiffCLI,
    VisualDiffConfig,
    load_image,
    render_view,
    save_buffer,
    ViewMode,
    VERSION
)
import json
import logging

__all__ = [
    'ComparisonMode',
    'ImageComparator',
    'VisualDiffCLI',
    'VisualDiffConfig',
    'VERSION',
    'compare_images',
    'save_view',
    'load_report',
    'save_report'
]

# Configure module logger
logger = logging.getLogger(__name__)

def compare_images(image_a_path: str, image_b_path: str, config: VisualDiffConfig = None,
                   fast: bool = False):
    """
    Convenience function to compare two image files

    Args:
        image_a_path: Path to the first image
        image_b_path: Path to the second image
        config: Optional VisualDiffConfig object
        fast: Use the fixed-stride fast comparison

    Returns:
        ComparisonSession holding the normalized buffers, the difference
        image and the results. Call ``to_report()`` for the report.

    Example:
        >>> session = compare_images('before.png', 'after.png')
        >>> report = session.to_report()
        >>> print(f"{report.pixel_difference.percentage:.2f}% different")
    """
    comparator = ImageComparator(config)
    mode = ComparisonMode.FAST if fast else ComparisonMode.FULL
    return comparator.compare_sync(load_image(image_a_path), load_image(image_b_path), mode)

def save_view(session, view: ViewMode, filepath: str, ratio: float = 50.0):
    """
    Render one of the preview images of a session to a PNG

    Args:
        session: ComparisonSession returned by compare_images
        view: ViewMode to render
        filepath: Where to write the image
        ratio: Split ratio for the slider view
    """
    save_buffer(render_view(session, view, ratio), filepath)
    logger.info(f"{view.value} view saved to {filepath}")

def load_report(filepath: str) -> dict:
    """
    Load a comparison report from a JSON file

    Args:
        filepath: Path to the report JSON file

    Returns:
        Report dictionary
    """
    with open(filepath, 'r') as f:
        return json.load(f)

def save_report(report, filepath: str):
    """
    Save a comparison report to a JSON file

    Args:
        report: ComparisonReport or report dictionary
        filepath: Path where to save the report
    """
    data = report.to_dict() if hasattr(report, 'to_dict') else report
    with open(filepath, 'w') as f:
        json.dump(data, f, indent=2)
    logger.info(f"Report saved to {filepath}")

if __name__ == '__main__':
    # Run CLI when executed directly
    import sys
    cli = VisualDiffCLI()
    sys.exit(cli.run())
