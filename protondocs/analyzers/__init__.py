"""Go source analysis: parsing, comment association, enhancement and discovery."""

from __future__ import annotations

from .discovery import Discoverer, DiscoveryError, package_category, packages_by_category
from .enhancer import SymbolEnhancer
from .source_tree import SourceParseError, SourceTree, parse_directory

__all__ = [
    "Discoverer",
    "DiscoveryError",
    "SourceParseError",
    "SourceTree",
    "SymbolEnhancer",
    "package_category",
    "packages_by_category",
    "parse_directory",
]
