"""Exception types raised by visualdiff"""


class ConfigError(Exception):
    """Configuration related errors"""
    pass


class ComparisonError(Exception):
    """Base class for comparison failures"""
    pass


class DimensionMismatchError(ComparisonError):
    """Buffers being compared differ in size"""
    pass


class DegenerateInputError(ComparisonError):
    """Zero width or height"""
    pass


class ComparisonTimeoutError(ComparisonError):
    """A time budget expired before the comparison finished"""
    pass


class ComputationError(ComparisonError):
    """Unexpected failure while reading or processing pixels"""
    pass


class ComparisonInProgressError(ComparisonError):
    """A comparator was asked to start while another run is pending"""
    pass
