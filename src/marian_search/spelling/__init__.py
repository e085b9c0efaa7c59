"""Spelling suggestions built from a reference dictionary and the corpus vocabulary."""

from marian_search.spelling.dictionary import (
    DictionaryProvider,
    EmptyDictionary,
    StaticDictionary,
    WordListDictionary,
    dictionary_from_settings,
)
from marian_search.spelling.model import SpellingModel, build_spelling_model


__all__ = [
    "DictionaryProvider",
    "EmptyDictionary",
    "SpellingModel",
    "StaticDictionary",
    "WordListDictionary",
    "build_spelling_model",
    "dictionary_from_settings",
]
