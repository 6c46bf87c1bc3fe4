"""
Exception hierarchy for pycloud.
"""


class CloudError(Exception):
    """Base class for every error raised by pycloud."""


class InvalidParameterError(CloudError, ValueError):
    """An argument is outside the range an operation accepts."""


class OutOfBoundsError(CloudError, IndexError):
    """A point index lies outside ``[0, len(cloud))``."""

    def __init__(self, index, length):
        super().__init__(f"index {index} out of bounds for point cloud of length {length}")
        self.index = index
        self.length = length


class AlgorithmError(CloudError):
    """An algorithm ran but could not compute a result."""


class FormatError(CloudError):
    """A point cloud file could not be decoded or encoded."""
