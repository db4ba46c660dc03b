"""Image exchange service: upload, list and download stored images."""

__version__ = "1.0.0"
