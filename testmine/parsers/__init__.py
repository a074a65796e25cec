"""Parser front-ends and test-file classification."""

from __future__ import annotations

from typing import Dict

from ..models import Lang
from .base import ClassMeta, MetaFactory, MethodMeta
from .java import JavaMetaFactory
from .kotlin import KotlinMetaFactory

_META_FACTORIES: Dict[Lang, MetaFactory] = {
    Lang.JAVA: JavaMetaFactory(),
    Lang.KOTLIN: KotlinMetaFactory(),
}


def get_meta_factory(language: Lang) -> MetaFactory:
    """Return the front-end registered for ``language``."""
    return _META_FACTORIES[language]


__all__ = [
    "ClassMeta",
    "MetaFactory",
    "MethodMeta",
    "get_meta_factory",
]
