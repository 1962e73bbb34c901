"""
Search Service Module

Catalog and library search across streaming services, with pagination that
replays the last request exactly.
"""

from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple
import logging
import threading

from core.errors import MusicClientError, describe_error
from core.event_bus import EventBus, EventType
from models.search import SearchResults, SearchType
from models.service import ServiceInfo
from services.api.music_api import MusicApi

logger = logging.getLogger(__name__)

LIBRARY_SOURCE = "server"


@dataclass(frozen=True)
class SearchRequest:
    """Everything needed to replay a search for another page"""
    query: str
    search_type: SearchType
    is_library: bool
    use_multi_service: bool
    service: Optional[str]
    services: Tuple[str, ...]
    page: int = 1
    page_size: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class SearchService:
    """
    Search Service

    A newer search makes any in-flight one stale: its response is dropped
    when it arrives. Mode, service or page-size changes also drop the
    current results.

    Example:
        search = SearchService(MusicApi(client))
        search.select_service("qobuz")
        search.search("daft punk")
        search.next_page()
    """

    def __init__(
        self,
        music_api: MusicApi,
        event_bus: Optional[EventBus] = None,
        default_service: str = "qobuz",
        page_size: int = 20,
    ):
        self._api = music_api
        self._event_bus = event_bus or EventBus()
        self._lock = threading.RLock()
        self._executor = ThreadPoolExecutor(max_workers=3, thread_name_prefix="search")

        self._selected_service = default_service
        self._selected_services: List[str] = []
        self._use_multi_service = False
        self._page_size = max(1, int(page_size))
        self._available_services: List[ServiceInfo] = []

        self._results: Optional[SearchResults] = None
        self._last_request: Optional[SearchRequest] = None
        self._request_token = 0
        self._is_searching = False
        self._error: Optional[str] = None

    # ===== State =====

    @property
    def results(self) -> Optional[SearchResults]:
        with self._lock:
            return self._results

    @property
    def last_request(self) -> Optional[SearchRequest]:
        with self._lock:
            return self._last_request

    @property
    def current_page(self) -> int:
        with self._lock:
            return self._last_request.page if self._last_request else 1

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def is_searching(self) -> bool:
        return self._is_searching

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def selected_service(self) -> str:
        return self._selected_service

    @property
    def selected_services(self) -> List[str]:
        with self._lock:
            return list(self._selected_services)

    @property
    def use_multi_service(self) -> bool:
        return self._use_multi_service

    @property
    def available_services(self) -> List[ServiceInfo]:
        with self._lock:
            return list(self._available_services)

    # ===== Searching =====

    def search(
        self,
        query: str,
        search_type: SearchType = SearchType.TRACKS,
        page: int = 1,
        library: bool = False,
    ) -> Optional[SearchResults]:
        """
        Search with the current service selection

        Args:
            query: Free text; blank queries are ignored
            search_type: TRACKS, ALBUMS, PLAYLISTS or ALL
            page: 1-based page number
            library: Search the user's own library instead of the catalogs

        Returns:
            The results (empty on failure), or None for a blank query
        """
        query = (query or "").strip()
        if not query:
            return None

        with self._lock:
            multi = self._use_multi_service and bool(self._selected_services) and not library
            request = SearchRequest(
                query=query,
                search_type=search_type,
                is_library=library,
                use_multi_service=multi,
                service=LIBRARY_SOURCE if library else (None if multi else self._selected_service),
                services=tuple(self._selected_services) if multi else (),
                page=max(1, int(page)),
                page_size=self._page_size,
            )
        return self._execute(request)

    def search_library(self, query: str, search_type: SearchType = SearchType.TRACKS) -> Optional[SearchResults]:
        return self.search(query, search_type, library=True)

    def _execute(self, request: SearchRequest) -> SearchResults:
        with self._lock:
            self._request_token += 1
            token = self._request_token
            self._is_searching = True
        logger.info("Searching %s for '%s' (page %d, offset %d)",
                    request.search_type.value, request.query, request.page, request.offset)
        self._event_bus.publish_sync(EventType.SEARCH_STARTED, {
            "query": request.query,
            "type": request.search_type.value,
            "page": request.page,
        })

        results, error = self._fetch(request)

        with self._lock:
            if token != self._request_token:
                logger.debug("Discarding stale results for '%s'", request.query)
                return results
            self._results = results
            self._last_request = request
            self._error = error
            self._is_searching = False
        self._event_bus.publish_sync(EventType.SEARCH_RESULTS_CHANGED, results)
        return results

    def _fetch(self, request: SearchRequest) -> Tuple[SearchResults, Optional[str]]:
        if request.search_type != SearchType.ALL:
            return self._fetch_one(request, request.search_type)

        futures = [
            self._executor.submit(self._fetch_one, request, search_type)
            for search_type in (SearchType.TRACKS, SearchType.ALBUMS, SearchType.PLAYLISTS)
        ]
        wait(futures)
        (tracks, tracks_error), (albums, albums_error), (playlists, playlists_error) = [
            f.result() for f in futures
        ]
        errors = [e for e in (tracks_error, albums_error, playlists_error) if e]

        combined = SearchResults(
            tracks=tracks.tracks,
            albums=albums.albums,
            playlists=playlists.playlists,
            total=max(tracks.total, albums.total, playlists.total),
            offset=request.offset,
            limit=request.page_size,
        )
        # Partial failures still show what did come back
        return combined, errors[0] if len(errors) == 3 else None

    def _fetch_one(self, request: SearchRequest, search_type: SearchType) -> Tuple[SearchResults, Optional[str]]:
        try:
            results = self._api.search(
                request.query,
                search_type=search_type,
                limit=request.page_size,
                offset=request.offset,
                service=request.service,
                services=request.services or None,
            )
            return results, None
        except MusicClientError as e:
            logger.warning("Search (%s) failed: %s", search_type.value, e)
            return SearchResults.empty(limit=request.page_size, offset=request.offset), describe_error(e)

    # ===== Pagination =====

    def go_to_page(self, page: int) -> Optional[SearchResults]:
        """Replay the last search for another page; the current page is a no-op."""
        with self._lock:
            request = self._last_request
            if request is None or page < 1:
                return None
            if page == request.page and self._results is not None:
                return self._results
        return self._execute(replace(request, page=page))

    def next_page(self) -> Optional[SearchResults]:
        with self._lock:
            request = self._last_request
            if request is None:
                return None
            if self._results is not None and not self._results.has_next_page:
                return None
        return self.go_to_page(request.page + 1)

    def previous_page(self) -> Optional[SearchResults]:
        with self._lock:
            request = self._last_request
            if request is None or request.page <= 1:
                return None
        return self.go_to_page(request.page - 1)

    def set_page_size(self, page_size: int) -> Optional[SearchResults]:
        """Change the page size and re-run the last search from page 1."""
        page_size = max(1, int(page_size))
        with self._lock:
            if page_size == self._page_size:
                return self._results
            self._page_size = page_size
            request = self._last_request
        self._invalidate()
        if request is None:
            return None
        return self._execute(replace(request, page=1, page_size=page_size))

    # ===== Service selection =====

    def _invalidate(self) -> None:
        with self._lock:
            self._request_token += 1
            self._results = None
            self._is_searching = False
        self._event_bus.publish_sync(EventType.SEARCH_RESULTS_CHANGED, None)

    def select_service(self, service: str) -> None:
        with self._lock:
            self._selected_service = service
            self._use_multi_service = False
        self._invalidate()

    def toggle_multi_service(self) -> bool:
        with self._lock:
            self._use_multi_service = not self._use_multi_service
            if self._use_multi_service and not self._selected_services:
                self._selected_services = [self._selected_service]
            enabled = self._use_multi_service
        self._invalidate()
        return enabled

    def toggle_service_selection(self, service: str) -> None:
        with self._lock:
            if service in self._selected_services:
                self._selected_services.remove(service)
            else:
                self._selected_services.append(service)
        self._invalidate()

    def select_all_services(self) -> None:
        with self._lock:
            self._selected_services = [s.name for s in self._available_services]
        self._invalidate()

    def clear_service_selection(self) -> None:
        with self._lock:
            self._selected_services = []
        self._invalidate()

    def load_available_services(self) -> List[ServiceInfo]:
        try:
            services = self._api.get_available_services()
        except MusicClientError as e:
            logger.warning("Failed to load available services: %s", e)
            return self.available_services
        with self._lock:
            self._available_services = services
        self._event_bus.publish_sync(EventType.SERVICES_CHANGED, services)
        return services

    # ===== Result maintenance =====

    def clear_search(self) -> None:
        with self._lock:
            self._last_request = None
            self._error = None
        self._invalidate()

    def update_track_bpm(self, track_id: str, bpm: float) -> bool:
        with self._lock:
            if self._results is None or not any(t.id == track_id for t in self._results.tracks):
                return False
            self._results = self._results.with_tracks([
                t.with_changes(bpm=bpm) if t.id == track_id else t
                for t in self._results.tracks
            ])
            results = self._results
        self._event_bus.publish_sync(EventType.SEARCH_RESULTS_CHANGED, results)
        return True

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
