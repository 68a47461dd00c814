"""Errors raised by quicklens."""


class QuicklensError(Exception):
    """Base class for quicklens errors."""
    pass


class ImageLoadError(QuicklensError):
    """Failed to read or decode an input image."""
    pass


class GridShapeError(QuicklensError):
    """Grid is empty or has the wrong number of dimensions/channels."""
    pass
