"""Rights-management and licensing back office."""

__version__ = "0.1.0"
