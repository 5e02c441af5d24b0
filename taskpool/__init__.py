"""Thread worker pools with priorities, per-attempt deadlines, retries with back-off and rate limiting."""

__version__ = "0.1.0"
__all__ = ["__version__"]