"""
API route modules
"""

from plenario.api.routes import (
    health,
    politicians,
    feed,
    content
)

__all__ = [
    "health",
    "politicians",
    "feed",
    "content"
]
