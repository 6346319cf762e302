"""
Donor Finder Package.

Web page listing community blood donors derived from a public user directory,
with blood group and city filters and a per-visit "request help" action.
"""

__version__ = "1.0.0"
__description__ = "Community blood donor finder"

from .app import app
from .config import settings

__all__ = [
    "app",
    "settings",
    "__version__",
]
