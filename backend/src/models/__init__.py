# Package initialization
# Import all database models so they are registered on Base.metadata
from .site import Site

__all__ = [
    "Site",
]
