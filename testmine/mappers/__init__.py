"""Resolution engine: test class and method to production code."""

from __future__ import annotations

from .class_mapper import ClassMapper
from .method_mapper import DelegatingMethodMapper, MethodMatchStrategy, SourceMethodMapper
from .packages import RegexPackageNameResolver

__all__ = [
    "ClassMapper",
    "DelegatingMethodMapper",
    "MethodMatchStrategy",
    "RegexPackageNameResolver",
    "SourceMethodMapper",
]
