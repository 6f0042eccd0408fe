"""Selection protocol and the strategies that answer a multi-match."""

from .protocol import Decision, build_options, select
from .strategies import (
    AutoFirstStrategy,
    PromptStrategy,
    SelectionStrategy,
    choose_strategy,
)

__all__ = [
    "AutoFirstStrategy",
    "Decision",
    "PromptStrategy",
    "SelectionStrategy",
    "build_options",
    "choose_strategy",
    "select",
]
