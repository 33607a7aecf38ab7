"""cdylib-wheel: package a pre-built native extension into tagged Python wheels."""

__version__ = "0.1.0"
