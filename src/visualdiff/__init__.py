"""visualdiff package
Exporting main classes for external use.

Example:
    from visualdiff import ImageComparator, VisualDiffConfig
"""
from .core import (
    ComparisonMode,
    ComparisonReport,
    ComparisonSession,
    DifferenceResult,
    ImageComparator,
    PaletteEntry,
    ViewMode,
    VisualDiffCLI,
    VisualDiffConfig,
    VERSION,
)
from .errors import ComparisonError, ConfigError

__all__ = [
    'ComparisonMode',
    'ComparisonReport',
    'ComparisonSession',
    'DifferenceResult',
    'ImageComparator',
    'PaletteEntry',
    'ViewMode',
    'VisualDiffCLI',
    'VisualDiffConfig',
    'ComparisonError',
    'ConfigError',
    'VERSION'
]
