"""
Saved tracks endpoints
"""

from typing import List

from core.errors import BackendError
from core.ports.gateway import IApiGateway
from models.saved import SavedTrack, save_track_request
from models.track import Track


class SavedTracksApi:
    """Wrapper over /saved-tracks"""

    def __init__(self, client: IApiGateway):
        self._client = client

    def save(self, track: Track) -> SavedTrack:
        data = self._client.post('/saved-tracks', body=save_track_request(track))
        if not isinstance(data, dict):
            raise BackendError("Empty response from server")
        return SavedTrack.from_dict(data)

    def list(self, page: int = 1, limit: int = 50) -> List[SavedTrack]:
        data = self._client.get('/saved-tracks', params={'page': page, 'limit': limit})
        if data is not None and not isinstance(data, list):
            raise BackendError(f"Unexpected saved tracks payload: {type(data).__name__}")
        try:
            return [SavedTrack.from_dict(t) for t in data or [] if isinstance(t, dict)]
        except (KeyError, TypeError, ValueError) as e:
            raise BackendError(f"Malformed saved track: {e}") from e

    def remove(self, saved_id: str) -> None:
        self._client.delete(f'/saved-tracks/{saved_id}')

    def is_saved(self, track_id: str, source: str) -> bool:
        data = self._client.get('/saved-tracks/check', params={'track_id': track_id, 'source': source})
        return bool(data)
