"""Clipboard sink for generated version numbers.

Copying is a convenience for the user who pastes the identifier into the
editor's "Name current version" dialog; failures never affect the workflow.
"""

from typing import List, Optional, Protocol, runtime_checkable


@runtime_checkable
class Clipboard(Protocol):
    """Something that can receive a version number."""

    async def copy(self, text: str) -> None:
        ...


class InMemoryClipboard:
    """Keeps copied values so the client can fetch and copy them locally."""

    def __init__(self):
        self._history: List[str] = []

    async def copy(self, text: str) -> None:
        self._history.append(text)

    @property
    def current(self) -> Optional[str]:
        return self._history[-1] if self._history else None

    @property
    def history(self) -> List[str]:
        return list(self._history)

    def clear(self) -> None:
        self._history.clear()
