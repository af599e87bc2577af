"""String helpers for deriving resource names from code-level identifiers.

A schema declared as ``benchmark_set`` (or ``benchmarkSet``) is bundled as
``benchmark-set-<version>.json5``. The splitting rules follow the usual class
and attribute naming conventions:

* all-caps runs form one word, ending before the capital that starts the next
  camel-case word (``'URLTokenizer'`` -> ``['URL', 'Tokenizer']``);
* regular camel-case words end before the next capital letter;
* underscores separate words and are dropped.
"""

from __future__ import annotations

__all__ = ['CamelCaseSplitter', 'camel_to_snake_case', 'implies', 'split_camel_case', 'split_words']

import enum
import logging
import typing

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


def implies(premise: bool, conclusion: bool) -> bool:
    """True iff *premise* => *conclusion*."""
    return not premise or conclusion


class _State(enum.Enum):
    EMPTY = enum.auto()
    SINGLE_UPPER = enum.auto()
    UPPER_WORD = enum.auto()
    NORMAL_WORD = enum.auto()


class CamelCaseSplitter:
    """Incrementally split a camel-case string into its words.

    Characters are added with ``+=``. The current split is available as
    :py:attr:`words`. Note that the split may be revised by later characters:
    ``'URLT'`` splits to ``['URLT']``, but ``'URLTo'`` to ``['URL', 'To']``.
    """

    def __init__(self):
        self._complete_words: typing.List[str] = []
        self._builder: typing.List[str] = []
        self._state = _State.EMPTY

    def __iadd__(self, string: str):
        for char in string:
            self._add(char)
        return self

    def _add(self, char: str):
        if self._state is _State.EMPTY:
            self._builder.append(char)
            self._state = _State.SINGLE_UPPER if char.isupper() else _State.NORMAL_WORD
        elif self._state is _State.SINGLE_UPPER:
            self._builder.append(char)
            self._state = _State.UPPER_WORD if char.isupper() else _State.NORMAL_WORD
        elif self._state is _State.UPPER_WORD:
            if not char.isupper():
                # The last capital letter starts the following word.
                start = self._builder.pop()
                self._complete_words.append(''.join(self._builder))
                self._builder = [start]
                self._state = _State.NORMAL_WORD
            self._builder.append(char)
        else:
            assert self._state is _State.NORMAL_WORD
            if char.isupper():
                self._complete_words.append(''.join(self._builder))
                self._builder = []
                self._state = _State.SINGLE_UPPER
            self._builder.append(char)

    @property
    def words(self) -> typing.List[str]:
        return self._complete_words + [''.join(self._builder)]


def split_camel_case(string: str) -> typing.List[str]:
    """Split *string* into its camel-case components.

    The empty string yields a single empty word.
    """
    splitter = CamelCaseSplitter()
    splitter += string
    return splitter.words


def split_words(identifier: str) -> typing.List[str]:
    """Split a Python or camel-case identifier into words.

    Underscores separate words; each underscore-delimited part is further split
    by :py:func:`split_camel_case`. Empty parts (leading, trailing, or doubled
    underscores) are dropped.
    """
    words = []
    for part in identifier.split('_'):
        if part:
            words.extend(split_camel_case(part))
    return words


def camel_to_snake_case(identifier: str, snake: str = '_') -> str:
    """Lowercase the words of *identifier* and join them with *snake*.

    Example:
        >>> camel_to_snake_case('tvtSplitLogs', '-')
        'tvt-split-logs'
        >>> camel_to_snake_case('benchmark_set', '-')
        'benchmark-set'
    """
    return snake.join(word.lower() for word in split_words(identifier))
