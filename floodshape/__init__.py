"""Dark/bright flood region extraction and shape features for SAR/optical rasters."""

__version__ = "0.1.0"
