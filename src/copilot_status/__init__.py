"""GitHub Copilot CLI usage tracker and visualizer."""

__version__ = "1.0.0"
