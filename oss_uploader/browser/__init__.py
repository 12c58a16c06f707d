"""
Interactive prefix browser for picking an upload target.
"""

from .browser import (
    BrowseAction,
    BrowseChoice,
    browse_directories,
    build_choices,
    parent_prefix,
)

__all__ = [
    "BrowseAction",
    "BrowseChoice",
    "browse_directories",
    "build_choices",
    "parent_prefix",
]
