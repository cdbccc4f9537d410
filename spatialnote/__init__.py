"""spatialnote - graph and history engine for a spatial notepad."""

__version__ = "1.0.0"
