"""Read and modify ustar archives in place."""

__version__ = "0.1.0"
__all__ = ["utils", "errors", "archive", "access", "remove", "move", "extract", "add"]