"""Backend package serving the test report virtual file tree."""

__version__ = "1.0.0"

__all__ = ["__version__"]
