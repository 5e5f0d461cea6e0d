"""vizgrid: multi-view chart spec compiler and cross-view interaction synchronizer."""

__version__ = "0.1.0"
