"""Spelling model used to suggest corrections for poorly matching queries.

Candidate generation is edit-distance based with length-dependent limits:
- 1-2 chars: no suggestions (too many false positives)
- 3-5 chars: at most 1 edit
- 6+ chars: at most 2 edits

Only dictionary headwords are used; hunspell affix flags are not expanded.
An inflected form that the corpus never contains ("colours" next to an
indexed "colour" with dictionary entry ``colour/S``) is therefore treated as
unknown and gets its stem offered as a correction.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from marian_search.spelling.dictionary import headword


def levenshtein_distance(s1: str, s2: str, max_distance: int | None = None) -> int:
    """Calculate the Levenshtein (edit) distance between two strings.

    When ``max_distance`` is given the computation bails out early and
    returns ``max_distance + 1`` once the bound is certainly exceeded.

    Examples:
        >>> levenshtein_distance("kitten", "sitting")
        3
        >>> levenshtein_distance("regx", "regex")
        1
    """
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    if len(s1) > len(s2):
        s1, s2 = s2, s1
    m, n = len(s1), len(s2)

    if max_distance is not None and n - m > max_distance:
        return max_distance + 1

    prev_row = list(range(m + 1))
    curr_row = [0] * (m + 1)
    for j in range(1, n + 1):
        curr_row[0] = j
        row_min = j
        for i in range(1, m + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            curr_row[i] = min(
                prev_row[i] + 1,  # deletion
                curr_row[i - 1] + 1,  # insertion
                prev_row[i - 1] + cost,  # substitution
            )
            row_min = min(row_min, curr_row[i])
        if max_distance is not None and row_min > max_distance:
            return max_distance + 1
        prev_row, curr_row = curr_row, prev_row

    return prev_row[m]


def get_max_edit_distance(term_length: int) -> int:
    """Return the maximum edit distance tolerated for a term of this length."""
    if term_length <= 2:
        return 0
    if term_length <= 5:
        return 1
    return 2


class SpellingModel:
    """Recognizes known words and proposes near-miss corrections.

    Words that also appear in the reference dictionary are preferred over
    corpus-only words at the same edit distance.
    """

    def __init__(
        self,
        words: Iterable[str] = (),
        *,
        dictionary_words: Iterable[str] = (),
        max_suggestions: int = 5,
    ) -> None:
        self.max_suggestions = max_suggestions
        self._words: set[str] = set()
        self._dictionary_words = frozenset(word.lower() for word in dictionary_words)
        self._by_length: dict[int, list[str]] = defaultdict(list)
        for word in self._dictionary_words:
            self.add(word)
        for word in words:
            self.add(word)

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and word.lower() in self._words

    def add(self, word: str) -> None:
        normalized = word.strip().lower()
        if not normalized or normalized in self._words:
            return
        self._words.add(normalized)
        self._by_length[len(normalized)].append(normalized)

    def suggest(self, term: str) -> list[str]:
        """Return ranked corrections for ``term``; empty when it is already known."""
        normalized = term.strip().lower()
        if not normalized or normalized in self._words:
            return []

        max_distance = get_max_edit_distance(len(normalized))
        if max_distance == 0:
            return []

        candidates: list[tuple[int, int, str]] = []
        length = len(normalized)
        for candidate_length in range(max(1, length - max_distance), length + max_distance + 1):
            for word in self._by_length.get(candidate_length, ()):
                distance = levenshtein_distance(normalized, word, max_distance)
                if distance <= max_distance:
                    in_dictionary = 0 if word in self._dictionary_words else 1
                    candidates.append((distance, in_dictionary, word))

        candidates.sort()
        return [word for _distance, _rank, word in candidates[: self.max_suggestions]]


def build_spelling_model(
    dictionary_lines: Iterable[str],
    vocabulary: Iterable[str],
    *,
    max_suggestions: int = 5,
) -> SpellingModel:
    """Build a model from dictionary entries found in ``vocabulary`` plus the vocabulary itself.

    Every vocabulary word is added unconditionally so indexed terms missing
    from the reference dictionary are never flagged as misspelled.
    """
    vocabulary_words = {word.lower() for word in vocabulary}
    dictionary_words = {word for word in (headword(line) for line in dictionary_lines) if word in vocabulary_words}
    return SpellingModel(vocabulary_words, dictionary_words=dictionary_words, max_suggestions=max_suggestions)
