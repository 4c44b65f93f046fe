from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class UIProvider(ABC):
    """
    View abstraction. The engine never talks to a provider; the game runner
    reads the run state and hands providers what to show.
    Providers may be CLI, Web, etc.
    """

    is_blocking: bool = True

    @abstractmethod
    def room(self, text: str, data: Optional[Dict[str, Any]] = None) -> None:
        pass

    @abstractmethod
    def log(self, text: str, data: Optional[Dict[str, Any]] = None) -> None:
        pass

    @abstractmethod
    def system(self, text: str, data: Optional[Dict[str, Any]] = None) -> None:
        pass

    @abstractmethod
    def error(self, text: str, data: Optional[Dict[str, Any]] = None) -> None:
        pass

    @abstractmethod
    def choice(
        self,
        prompt: str,
        options: List[str],
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[int]:
        """
        Returns the 0-based index of the selected option
        (None for non-blocking providers).
        """
        pass

    @abstractmethod
    def text_input(
        self,
        prompt: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        pass
