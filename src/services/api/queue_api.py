"""
Backend play-queue endpoints
"""

from typing import List

from core.ports.gateway import IApiGateway
from models.queue import QueueItem
from models.track import Track


class QueueApi:
    """Wrapper over /queue"""

    def __init__(self, client: IApiGateway):
        self._client = client

    def get_queue(self) -> List[QueueItem]:
        """Queue items sorted by server-assigned position."""
        data = self._client.get('/queue')
        items = [QueueItem.from_dict(i) for i in data or [] if isinstance(i, dict)]
        items.sort(key=lambda item: item.position)
        return items

    def add_to_queue(self, track: Track) -> None:
        self._client.post('/queue', body={
            'track_id': track.id,
            'title': track.title,
            'artist': track.artist,
            'album': track.album,
            'duration': track.duration or 0,
            'source': track.source,
            'cover_url': track.cover_url,
        })

    def remove(self, item_id: str) -> None:
        self._client.delete(f'/queue/{item_id}')

    def reorder(self, item_id: str, new_position: int) -> None:
        self._client.put(f'/queue/{item_id}/reorder', body={'new_position': new_position})

    def clear(self) -> None:
        self._client.delete('/queue')
