from typing import Any, Dict, Optional

from ui.provider import UIProvider


class WebProvider(UIProvider):
    """
    Queues every message on the session as an event dict. Choices and text
    prompts never block; the browser answers them with the next /step call.
    """

    is_blocking = False

    def __init__(self, session):
        self.session = session

    def _send(self, kind: str, text: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.session.emit({"type": kind, "text": text, "data": data})

    def room(self, text, data=None):
        self._send("room", text, data)

    def log(self, text, data=None):
        self._send("log", text, data)

    def system(self, text, data=None):
        self._send("system", text, data)

    def error(self, text, data=None):
        self._send("error", text, data)

    def choice(self, prompt, options, data=None):
        self.session.emit({"type": "choice", "prompt": prompt, "options": list(options), "data": data})
        return None

    def text_input(self, prompt, data=None):
        self.session.emit({"type": "input", "prompt": prompt, "data": data})
        return None
