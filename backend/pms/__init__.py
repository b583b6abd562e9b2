"""Property management backend: reservation numbering and booking."""

__version__ = "0.1.0"
