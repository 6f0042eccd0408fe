"""How a multi-match is resolved: automatically, or by asking the user.

Strategy = "given the ordered options, which one?"
The protocol only sees the index that comes back (None = cancelled).
"""

from __future__ import annotations

import logging
import sys
from abc import ABC, abstractmethod
from typing import IO, Any

from rich.console import Console
from rich.prompt import Prompt
from rich.text import Text

from ..models.types import SelectionOption

logger = logging.getLogger(__name__)

MARKER = "→"
HIGHLIGHT_STYLE = "bold cyan"


def render_option(option: SelectionOption) -> Text:
    """Option label with the fuzzy-matched characters of the name highlighted."""
    text = Text(option.label)
    if option.candidate is not None:
        for pos in option.candidate.positions:
            text.stylize(HIGHLIGHT_STYLE, pos, pos + 1)
    return text


class SelectionStrategy(ABC):
    """Picks one of the presented options."""

    name: str = ""
    interactive: bool = False

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    @abstractmethod
    def choose(self, query: str, options: list[SelectionOption]) -> int | None:
        """Return the index of the chosen option, or None if the user cancelled."""


class AutoFirstStrategy(SelectionStrategy):
    """No usable input channel: take the top-ranked option and say so."""

    name = "auto_first"
    interactive = False

    def choose(self, query: str, options: list[SelectionOption]) -> int | None:
        self.console.print(Text(f"Multiple matches found for '{query}':"))
        for i, option in enumerate(options):
            marker = MARKER if i == 0 else " "
            self.console.print(Text(f"  {marker} ").append_text(render_option(option)))
        self.console.print(
            "[dim]Using first match (run in an interactive terminal to choose)[/dim]"
        )
        return 0


class PromptStrategy(SelectionStrategy):
    """Numbered list on the diagnostic console, answered from stdin."""

    name = "prompt"
    interactive = True

    CANCEL = "q"

    def __init__(self, console: Console | None = None, stream: IO[str] | None = None) -> None:
        super().__init__(console)
        self._stream = stream

    def choose(self, query: str, options: list[SelectionOption]) -> int | None:
        self.console.print(Text(f"Multiple matches found for '{query}'. Select one:"))
        for i, option in enumerate(options, start=1):
            self.console.print(Text(f"  {i}. ").append_text(render_option(option)))

        choices = [str(i) for i in range(1, len(options) + 1)]
        try:
            answer = Prompt.ask(
                f"Choice [dim](1-{len(options)}, {self.CANCEL} to cancel)[/dim]",
                console=self.console,
                choices=[*choices, self.CANCEL],
                show_choices=False,
                default="1",
                stream=self._stream,
            )
        except (KeyboardInterrupt, EOFError):
            self.console.print()
            logger.debug("Selection interrupted")
            return None

        if answer == self.CANCEL:
            return None
        return int(answer) - 1


def _is_terminal(stream: Any) -> bool:
    try:
        return bool(stream.isatty())
    except (AttributeError, ValueError, OSError):
        return False


def choose_strategy(
    mode: str = "auto",
    console: Console | None = None,
    stdin: Any = None,
) -> SelectionStrategy:
    """Pick a strategy: prompt only when an interactive input channel exists.

    ``mode`` is "auto" (stdin TTY check), "always" or "never".
    """
    if mode == "always":
        interactive = True
    elif mode == "never":
        interactive = False
    else:
        interactive = _is_terminal(stdin if stdin is not None else sys.stdin)

    strategy: SelectionStrategy = (
        PromptStrategy(console) if interactive else AutoFirstStrategy(console)
    )
    logger.debug("Selection strategy: %s (mode=%s)", strategy.name, mode)
    return strategy
