"""Exception types for flood shape extraction."""


class FloodshapeError(Exception):
    """Base class for errors raised by floodshape."""


class ConfigError(FloodshapeError):
    """Raised when a parameters file or CLI value is invalid."""


class LabelFileError(FloodshapeError):
    """Raised when a label list (S1list.json / S2list.json) cannot be read."""


class RasterDecodeError(FloodshapeError):
    """Raised when an image file cannot be decoded into a usable raster."""
