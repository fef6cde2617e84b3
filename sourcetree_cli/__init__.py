"""Static, browsable source trees generated from LSIF dumps."""

__version__ = "0.3.0"
