"""Models of library members that may be executed during analysis."""

from pyconstval.models.java_lang import (
    analyzable,
    analyzable_constructor,
    java_lang_builder,
    java_lang_registry,
)

__all__ = [
    "analyzable",
    "analyzable_constructor",
    "java_lang_builder",
    "java_lang_registry",
]
