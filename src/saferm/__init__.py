"""Safe delete: move files to a recoverable trash instead of removing them."""

__version__ = "0.1.0"
