import asyncio
from typing import Callable, List, Optional

from pomolight.ports.menu_port import MenuOption, MenuPort

ANSI_COLORS = {
    "red": "\033[31m",
    "green": "\033[32m",
    "orange": "\033[33m",
    "blue": "\033[34m",
}
ANSI_RESET = "\033[0m"


class ConsoleMenu(MenuPort):
    """Numbered terminal menu. ``input()`` runs in an executor so ticks keep going."""

    def __init__(self, read: Callable[[str], str] = input, write: Callable[[str], None] = print):
        self._read = read
        self._write = write

    async def _readline(self, prompt: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read, prompt)

    async def choose(
        self, options: List[MenuOption], header: str = "", color: Optional[str] = None
    ) -> Optional[str]:
        if header:
            self._write(_tint(header, color))
        for index, option in enumerate(options, start=1):
            self._write(f"  {index}) {option.label}")
        answer = (await self._readline(">>> ")).strip()
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1].token
        for option in options:
            if answer.lower() in (option.token.lower(), option.label.lower()):
                return option.token
        return None

    async def ask(self, prompt: str) -> str:
        return (await self._readline(f"{prompt}: ")).strip()

    def show(self, text: str) -> None:
        self._write(text)


def _tint(text: str, color: Optional[str]) -> str:
    code = ANSI_COLORS.get(color)
    return f"{code}{text}{ANSI_RESET}" if code else text
