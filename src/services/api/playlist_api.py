"""
User playlist endpoints (/v2/playlists)
"""

from typing import List, Optional

from core.ports.gateway import IApiGateway
from models.playlist import Playlist, PlaylistItem, PlaylistPage
from models.track import Track


class PlaylistApi:
    """Wrapper over /v2/playlists"""

    def __init__(self, client: IApiGateway):
        self._client = client

    def list(self, page: int = 1, per_page: int = 20, search: Optional[str] = None) -> PlaylistPage:
        data = self._client.get('/v2/playlists', params={
            'page': page,
            'per_page': per_page,
            'search': search or None,
        })
        return PlaylistPage.from_dict(data or {})

    def create(self, name: str, description: Optional[str] = None, is_public: bool = False) -> Playlist:
        data = self._client.post('/v2/playlists', body={
            'name': name,
            'description': description,
            'is_public': is_public,
        })
        return Playlist.from_dict(data or {})

    def get(self, playlist_id: str) -> Playlist:
        return Playlist.from_dict(self._client.get(f'/v2/playlists/{playlist_id}') or {})

    def update(
        self,
        playlist_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> Playlist:
        body = {k: v for k, v in (('name', name), ('description', description), ('is_public', is_public))
                if v is not None}
        return Playlist.from_dict(self._client.put(f'/v2/playlists/{playlist_id}', body=body) or {})

    def delete(self, playlist_id: str) -> None:
        self._client.delete(f'/v2/playlists/{playlist_id}')

    def get_items(self, playlist_id: str) -> List[PlaylistItem]:
        data = self._client.get(f'/v2/playlists/{playlist_id}/items')
        items = [PlaylistItem.from_dict(i) for i in data or [] if isinstance(i, dict)]
        items.sort(key=lambda item: item.position)
        return items

    def add_item(self, playlist_id: str, track: Track, position: Optional[int] = None) -> PlaylistItem:
        """Append a track (or insert at position) with its display fields."""
        data = self._client.post(f'/v2/playlists/{playlist_id}/items', body={
            'item_type': 'track',
            'item_id': track.id,
            'position': position,
            'title': track.title,
            'artist': track.artist,
            'album': track.album,
            'duration': track.duration,
            'source': track.source,
            'cover_url': track.cover_url,
        })
        return PlaylistItem.from_dict(data or {})

    def add_playlist_item(self, playlist_id: str, nested: Playlist, position: Optional[int] = None) -> PlaylistItem:
        """Nest another playlist as an entry."""
        data = self._client.post(f'/v2/playlists/{playlist_id}/items', body={
            'item_type': 'playlist',
            'item_id': nested.id,
            'position': position,
            'playlist_name': nested.name,
        })
        return PlaylistItem.from_dict(data or {})

    def remove_item(self, playlist_id: str, item_id: str) -> None:
        self._client.delete(f'/v2/playlists/{playlist_id}/items/{item_id}')

    def reorder_item(self, playlist_id: str, item_id: str, new_position: int) -> None:
        self._client.put(f'/v2/playlists/{playlist_id}/items/{item_id}/reorder', body={'new_position': new_position})
