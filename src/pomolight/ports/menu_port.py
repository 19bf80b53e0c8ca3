from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class MenuOption:
    token: str
    label: str


class MenuPort(ABC):
    """Port for user input: picks one of the currently legal commands."""

    @abstractmethod
    async def choose(
        self, options: List[MenuOption], header: str = "", color: Optional[str] = None
    ) -> Optional[str]:
        """Wait for a selection and return its token (None when nothing was picked).

        ``color`` is a hint for how to tint the header; front ends may ignore it.
        """
        pass

    @abstractmethod
    async def ask(self, prompt: str) -> str:
        """Ask for a line of free text."""
        pass

    @abstractmethod
    def show(self, text: str) -> None:
        """Show a message to the user."""
        pass
