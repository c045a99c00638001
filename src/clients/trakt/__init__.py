from .client import TraktClient

__all__ = ["TraktClient"]
