"""
Interactive Input Channels

The ledger asks for re-confirmation through a Prompter so it never touches
the terminal directly. ConsolePrompter reads from stdin (passwords via
getpass); ScriptedPrompter replays canned answers for tests and scripted
sessions.
"""

import getpass
from abc import ABC, abstractmethod
from typing import Iterable, List, Tuple

from .errors import NoConsoleError


class Prompter(ABC):
    """Abstract source of human answers"""

    @abstractmethod
    def read_line(self, prompt: str) -> str:
        """Read a visible line of input"""
        pass

    @abstractmethod
    def read_secret(self, prompt: str) -> str:
        """Read a line of input without echoing it"""
        pass


class ConsolePrompter(Prompter):
    """Prompter backed by the process terminal"""

    def read_line(self, prompt: str) -> str:
        try:
            return input(prompt)
        except EOFError as e:
            raise NoConsoleError("Input channel closed") from e

    def read_secret(self, prompt: str) -> str:
        try:
            return getpass.getpass(prompt)
        except EOFError as e:
            raise NoConsoleError("Input channel closed") from e


class ScriptedPrompter(Prompter):
    """
    Replays a fixed list of answers in order.

    Every prompt shown is recorded in `asked` as (kind, prompt) so callers
    can assert on what was (or was not) requested. Running out of answers
    behaves like a closed console.
    """

    def __init__(self, answers: Iterable[str] = ()):
        self._answers: List[str] = list(answers)
        self.asked: List[Tuple[str, str]] = []

    def _next(self, kind: str, prompt: str) -> str:
        self.asked.append((kind, prompt))
        if not self._answers:
            raise NoConsoleError(f"No scripted answer for prompt: {prompt!r}")
        return self._answers.pop(0)

    def read_line(self, prompt: str) -> str:
        return self._next("line", prompt)

    def read_secret(self, prompt: str) -> str:
        return self._next("secret", prompt)

    @property
    def remaining(self) -> int:
        return len(self._answers)
