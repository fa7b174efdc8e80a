"""Flow Builder - workflow graph editor with dynamic parameter references."""

__version__ = "0.1.0"
