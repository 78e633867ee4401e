"""RataPay payment status service."""

__version__ = "1.0.0"
