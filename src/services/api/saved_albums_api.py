"""
Saved albums endpoints
"""

from typing import List

from core.errors import BackendError
from core.ports.gateway import IApiGateway
from models.album import Album
from models.saved import SavedAlbum, save_album_request
from models.track import Track


class SavedAlbumsApi:
    """Wrapper over /albums/*"""

    def __init__(self, client: IApiGateway):
        self._client = client

    def save(self, album: Album) -> SavedAlbum:
        data = self._client.post('/albums/save', body=save_album_request(album))
        if not isinstance(data, dict):
            raise BackendError("Empty response from server")
        return SavedAlbum.from_dict(data)

    def list(self, page: int = 1, limit: int = 50) -> List[SavedAlbum]:
        data = self._client.get('/albums/saved', params={'page': page, 'limit': limit})
        return [SavedAlbum.from_dict(a) for a in data or [] if isinstance(a, dict)]

    def remove(self, saved_id: str) -> None:
        self._client.delete(f'/albums/saved/{saved_id}')

    def is_saved(self, album_id: str, source: str) -> bool:
        data = self._client.get('/albums/saved/check', params={'album_id': album_id, 'source': source})
        return bool(data)

    def get_album_tracks(self, album_id: str, source: str) -> List[Track]:
        data = self._client.get(f'/albums/{album_id}/tracks', params={'source': source})
        return [Track.from_dict(t) for t in data or [] if isinstance(t, dict)]
