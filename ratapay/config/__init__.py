"""Configuration package for the payment status service."""
from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
