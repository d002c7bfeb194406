"""jatdash: session state detection for supervised coding agents."""

__version__ = "0.1.0"
