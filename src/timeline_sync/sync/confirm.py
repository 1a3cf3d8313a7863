"""Confirmation channel used before any remote mutation.

The sync executor and the replace workflow never read from the terminal
themselves; they ask an injected ``Confirmer``.  ``ConsoleConfirmer``
prompts on the terminal and tests pass scripted fakes. The ``--confirm``
flag skips the channel entirely (``auto_confirm=True``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)

AFFIRMATIVE_ANSWERS = frozenset({"yes", "y"})


class Confirmer(Protocol):
    """Protocol that all confirmation channels must satisfy."""

    def ask_yes_no(self, prompt: str) -> bool:
        """Ask a yes/no question.

        Returns:
            ``True`` only for an affirmative answer.
        """
        ...  # pragma: no cover

    def ask_phrase(self, prompt: str, phrase: str) -> bool:
        """Ask the operator to type *phrase* exactly.

        Returns:
            ``True`` only when the answer matches *phrase*.
        """
        ...  # pragma: no cover


def is_affirmative(answer: str) -> bool:
    """``yes`` or ``y``, case-insensitive, surrounding whitespace ignored."""
    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


def matches_phrase(answer: str, phrase: str) -> bool:
    """Exact, case-sensitive match after stripping surrounding whitespace."""
    return answer.strip() == phrase


class ConsoleConfirmer:
    """Prompt the operator on the terminal.

    Args:
        input_fn: Function used to read an answer; defaults to ``input``.
            End of input (``EOFError``) counts as a refusal.
    """

    def __init__(self, input_fn: Callable[[str], str] = input) -> None:
        self._input = input_fn

    def _read(self, prompt: str) -> str | None:
        try:
            return self._input(prompt)
        except EOFError:
            logger.info("No input available, treating as refusal")
            return None

    def ask_yes_no(self, prompt: str) -> bool:
        answer = self._read(f"{prompt} (yes/no): ")
        return answer is not None and is_affirmative(answer)

    def ask_phrase(self, prompt: str, phrase: str) -> bool:
        answer = self._read(f'{prompt} Type "{phrase}" to confirm: ')
        return answer is not None and matches_phrase(answer, phrase)
