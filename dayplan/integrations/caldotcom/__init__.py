"""Cal.com integration."""

from .client import CalDotComClient

__all__ = ['CalDotComClient']
