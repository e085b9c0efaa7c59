"""Reference dictionary providers.

Providers return raw dictionary lines. Hunspell ``.dic`` files carry affix
flags after a slash (``colour/MS``); only the headword before the slash is
used. The count line at the top of a ``.dic`` file needs no special casing
because it never matches an indexed term.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from marian_search.errors import DictionaryLoadFailure


if TYPE_CHECKING:
    from marian_search.config import Settings

logger = logging.getLogger(__name__)


@runtime_checkable
class DictionaryProvider(Protocol):
    """Source of reference dictionary lines."""

    async def load(self) -> list[str]:  # pragma: no cover - Protocol only
        """Return dictionary lines or raise ``DictionaryLoadFailure``."""


def headword(line: str) -> str:
    """Return the normalized headword of a dictionary line."""
    return line.split("/", 1)[0].strip().lower()


class WordListDictionary:
    """Loads a hunspell ``.dic`` file or a plain one-word-per-line list from disk."""

    def __init__(self, path: Path, *, encoding: str = "utf-8") -> None:
        self.path = path
        self.encoding = encoding

    async def load(self) -> list[str]:
        try:
            text = await asyncio.to_thread(self.path.read_text, encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise DictionaryLoadFailure(f"Failed to load dictionary {self.path}: {exc}") from exc
        lines = text.splitlines()
        logger.debug("Loaded %d dictionary lines from %s", len(lines), self.path)
        return lines


class StaticDictionary:
    """In-memory dictionary, handy for tests and embedded word lists."""

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines = tuple(lines)

    async def load(self) -> list[str]:
        return list(self._lines)


class EmptyDictionary:
    """No reference words; the spelling model then knows only the corpus vocabulary."""

    async def load(self) -> list[str]:
        return []


def dictionary_from_settings(settings: Settings) -> DictionaryProvider:
    """Return the provider configured by ``MARIAN_DICTIONARY_PATH``."""
    if settings.dictionary_path is None:
        return EmptyDictionary()
    return WordListDictionary(settings.dictionary_path)
