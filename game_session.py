from typing import Any, Dict, List, Optional


class GameSession:
    """
    One client's view of a Game: buffers the events the UI emits until the
    client collects them.
    """

    def __init__(self, game=None, session_id: Optional[str] = None):
        self.game = game
        self.session_id = session_id
        self.events: List[Dict[str, Any]] = []

    def emit(self, event: Dict[str, Any]):
        self.events.append(event)

    def drain(self) -> List[Dict[str, Any]]:
        evs, self.events = self.events, []
        return evs

    def step(self, player_input: Dict[str, Any]):
        self.events = []
        self.game.handle_input(player_input, self)
        return self.events
