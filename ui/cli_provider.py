from __future__ import annotations

from typing import Any, Dict, List, Optional
from ui.provider import UIProvider


RULE = "-" * 48


class CLIProvider(UIProvider):
    is_blocking = True

    def room(self, text: str, data: Optional[Dict[str, Any]] = None) -> None:
        print()
        print(RULE)
        print(text)
        print(RULE)

    def log(self, text: str, data: Optional[Dict[str, Any]] = None) -> None:
        print(f"  > {text}")

    def system(self, text: str, data: Optional[Dict[str, Any]] = None) -> None:
        print(text)

    def error(self, text: str, data: Optional[Dict[str, Any]] = None) -> None:
        print(f"[!] {text}")

    def choice(self, prompt: str, options: List[str], data: Optional[Dict[str, Any]] = None) -> int:
        """
        Numbered menu. A number picks by position; any other text picks the
        first option that starts with it (case-insensitive).
        """
        if prompt:
            print(prompt)
        for i, opt in enumerate(options, start=1):
            print(f"  [{i}] {opt}")

        while True:
            raw = self.text_input("", data)
            if raw.isdigit() and 1 <= int(raw) <= len(options):
                return int(raw) - 1
            if raw:
                for i, opt in enumerate(options):
                    if opt.lower().startswith(raw.lower()):
                        return i
            self.error(f"Pick 1-{len(options)} or type the start of an option.")

    def text_input(self, prompt: str, data: Optional[Dict[str, Any]] = None) -> str:
        return input(f"{prompt}> " if prompt else "> ").strip()
