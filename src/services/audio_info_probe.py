"""
Audio output metadata for the playing stream

Derived from the stream's HTTP headers (content type, content length) and
the track's own quality fields; nothing is decoded locally.
"""

from typing import Dict, Optional
import logging

from core.errors import MusicClientError
from core.ports.gateway import IApiGateway
from models.service import AudioOutputInfo
from models.track import Track

logger = logging.getLogger(__name__)

HEAD_TIMEOUT = 10.0

_CONTENT_TYPE_FORMATS = (
    ("audio/mpeg", "MP3"),
    ("audio/flac", "FLAC"),
    ("audio/x-flac", "FLAC"),
    ("audio/wav", "WAV"),
    ("audio/x-wav", "WAV"),
    ("audio/aac", "AAC"),
    ("audio/mp4", "AAC"),
    ("audio/ogg", "OGG"),
)


def format_from_content_type(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    content_type = content_type.lower()
    for marker, name in _CONTENT_TYPE_FORMATS:
        if marker in content_type:
            return name
    return None


class AudioInfoProbe:
    """Builds AudioOutputInfo, caching the HEAD result per stream URL."""

    def __init__(self, gateway: IApiGateway, timeout: float = HEAD_TIMEOUT):
        self._gateway = gateway
        self._timeout = timeout
        self._headers_cache: Dict[str, Dict[str, str]] = {}

    def analyze(self, track: Track) -> AudioOutputInfo:
        fallback = AudioOutputInfo(
            output_bitrate=track.bitrate,
            output_sample_rate=track.sample_rate,
            output_bit_depth=track.bit_depth,
            format=track.quality,
        )
        if not track.stream_url:
            return fallback

        headers = self._headers_cache.get(track.stream_url)
        if headers is None:
            try:
                headers = self._gateway.head(track.stream_url, timeout=self._timeout)
            except MusicClientError as e:
                logger.debug("Could not analyze audio stream: %s", e)
                return fallback
            self._headers_cache = {track.stream_url: headers}

        fmt = format_from_content_type(headers.get("content-type"))
        bitrate = None
        length = headers.get("content-length")
        if length and track.duration:
            try:
                bitrate = round(int(length) * 8 / track.duration / 1000)
            except ValueError:
                bitrate = None

        return AudioOutputInfo(
            output_bitrate=bitrate if bitrate is not None else track.bitrate,
            output_sample_rate=track.sample_rate,
            output_bit_depth=track.bit_depth,
            format=fmt or track.quality,
            codec=fmt,
        )

    def reset(self) -> None:
        self._headers_cache = {}
