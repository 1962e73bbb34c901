"""
Streaming catalog endpoints: search, stream URLs and service accounts
"""

import logging
from typing import List, Optional, Sequence

from core.errors import BackendError
from core.ports.gateway import IApiGateway
from models.search import SearchResults, SearchType
from models.service import BackendStreamUrl, ServiceInfo, ServiceStatus

logger = logging.getLogger(__name__)


class MusicApi:
    """Wrapper over /streaming/*"""

    def __init__(self, client: IApiGateway):
        self._client = client

    def search(
        self,
        query: str,
        search_type: SearchType = SearchType.TRACKS,
        limit: int = 20,
        offset: int = 0,
        service: Optional[str] = None,
        services: Optional[Sequence[str]] = None,
    ) -> SearchResults:
        """
        Search the streaming catalogs

        Args:
            query: Free text
            search_type: TRACKS, ALBUMS or PLAYLISTS (ALL is composed by the caller)
            service: Restrict to one service
            services: Restrict to several services (sent as services[i])
        """
        if search_type == SearchType.ALL:
            raise ValueError("SearchType.ALL must be split into per-type searches")

        params = {
            'q': query,
            'type': search_type.api_type,
            'limit': limit,
            'offset': offset,
            'service': service,
            'services': list(services) if services else None,
        }
        data = self._client.get('/streaming/search', params=params)
        if data is not None and not isinstance(data, dict):
            raise BackendError(f"Unexpected search payload: {type(data).__name__}")
        try:
            results = SearchResults.from_dict(data or {})
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise BackendError(f"Malformed search results: {e}") from e
        if not results.limit:
            results.limit = limit
        if not data or 'offset' not in data:
            results.offset = offset
        return results

    def get_stream_url(self, track_id: str, service: Optional[str] = None, quality: Optional[str] = None) -> str:
        data = self._client.get(
            '/streaming/stream-url',
            params={'track_id': track_id, 'service': service, 'quality': quality},
            timeout=self._client.streaming_timeout,
        )
        if not isinstance(data, str) or not data:
            raise BackendError(f"No stream URL returned for track {track_id}")
        return data

    def get_backend_stream_url(
        self,
        track_id: str,
        source: str,
        url: str,
        title: Optional[str] = None,
        artist: Optional[str] = None,
    ) -> BackendStreamUrl:
        """Ask the backend to proxy (and cache) a provider stream URL."""
        data = self._client.get(
            '/streaming/backend-stream-url',
            params={'track_id': track_id, 'source': source, 'url': url, 'title': title, 'artist': artist},
            timeout=self._client.streaming_timeout,
        )
        if not isinstance(data, dict) or not data.get('stream_url'):
            raise BackendError(f"No backend stream URL returned for track {track_id}")
        return BackendStreamUrl.from_dict(data)

    def get_available_services(self) -> List[ServiceInfo]:
        data = self._client.get('/streaming/services')
        return [ServiceInfo.from_dict(s) for s in data or [] if isinstance(s, dict)]

    def get_service_status(self) -> List[ServiceStatus]:
        data = self._client.get('/streaming/status') or {}
        return [ServiceStatus.from_dict(s) for s in data.get('services') or [] if isinstance(s, dict)]

    def connect_qobuz(self, username: str, password: str) -> str:
        data = self._client.post('/streaming/connect/qobuz', body={'username': username, 'password': password})
        return str(data or "")

    def disconnect_service(self, service_name: str) -> str:
        data = self._client.post('/streaming/disconnect', body={'service_name': service_name})
        return str(data or "")
