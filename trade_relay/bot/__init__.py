# Chat front-end
from .router import CommandRouter

__all__ = ["CommandRouter"]
