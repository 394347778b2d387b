"""A framework for linting Go source files: rule plumbing, disable comments and formatters."""

__version__ = "0.1.0"

__all__ = ["__version__"]