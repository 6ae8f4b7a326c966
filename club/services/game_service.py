"""Game catalog queries and admin mutations."""
from typing import Dict, List, Optional

from ..validators import GAME_SCHEMA
from .base import ResourceService


class GameService(ResourceService):
    """Games resource (cache root ``'games'``, list stale after 5 minutes)."""

    resource = 'games'
    label = 'Game'
    schema = GAME_SCHEMA

    def list_games(self) -> List[Dict]:
        return self._list(self._client.get_games)

    def get_game(self, game_id: Optional[str]) -> Optional[Dict]:
        return self._get(game_id, self._client.get_game)

    def create_game(self, game: Dict) -> Dict:
        return self._create(game, self._client.create_game)

    def update_game(self, game_id: str, changes: Dict) -> Dict:
        return self._update(game_id, changes, self._client.update_game)

    def delete_game(self, game_id: str) -> None:
        self._delete(game_id, self._client.delete_game)

    def active_games(self) -> List[Dict]:
        """Games whose status is ``active`` (the only purchasable ones)."""
        return [g for g in self.list_games() if g.get('status') == 'active']
