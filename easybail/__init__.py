"""EasyBail automation scheduler service."""

__version__ = "0.3.0"
