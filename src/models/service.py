"""
Streaming service and playback metadata models
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.serialization import optional_int, parse_datetime


@dataclass
class ServiceInfo:
    """A streaming service the backend can search"""
    name: str
    display_name: str
    supports_full_tracks: bool = True
    requires_premium: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> 'ServiceInfo':
        name = str(data.get('name') or '')
        return cls(
            name=name,
            display_name=str(data.get('display_name') or name),
            supports_full_tracks=bool(data.get('supports_full_tracks', True)),
            requires_premium=bool(data.get('requires_premium', False)),
        )


@dataclass
class ServiceStatus:
    """Connection state of one streaming account"""
    name: str
    display_name: str
    is_connected: bool = False
    connected_at: Optional[datetime] = None
    account_username: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'ServiceStatus':
        name = str(data.get('name') or '')
        return cls(
            name=name,
            display_name=str(data.get('display_name') or name),
            is_connected=bool(data.get('is_connected', False)),
            connected_at=parse_datetime(data.get('connected_at')),
            account_username=data.get('account_username'),
        )


@dataclass(frozen=True)
class BackendStreamUrl:
    """Backend-proxied (and possibly cached) stream location"""
    stream_url: str
    is_cached: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> 'BackendStreamUrl':
        return cls(
            stream_url=str(data['stream_url']),
            is_cached=bool(data.get('is_cached', False)),
        )


@dataclass(frozen=True)
class AudioOutputInfo:
    """Best-effort decoder/output metadata of the playing stream"""
    output_bitrate: Optional[int] = None       # kbps
    output_sample_rate: Optional[int] = None   # Hz
    output_bit_depth: Optional[int] = None
    format: Optional[str] = None
    codec: Optional[str] = None

    @property
    def has_info(self) -> bool:
        return (
            self.output_bitrate is not None
            or self.output_sample_rate is not None
            or self.format is not None
        )

    @property
    def formatted_output_quality(self) -> str:
        parts = []
        if self.output_bitrate is not None:
            parts.append(f"{self.output_bitrate} kbps")
        if self.output_sample_rate is not None and self.output_bit_depth is not None:
            parts.append(f"{self.output_sample_rate / 1000:.1f}kHz/{self.output_bit_depth}bit")
        elif self.output_sample_rate is not None:
            parts.append(f"{self.output_sample_rate / 1000:.1f}kHz")
        if self.format is not None:
            parts.append(self.format.upper())
        return " • ".join(parts)

    @classmethod
    def from_dict(cls, data: dict) -> 'AudioOutputInfo':
        return cls(
            output_bitrate=optional_int(data.get('output_bitrate')),
            output_sample_rate=optional_int(data.get('output_sample_rate')),
            output_bit_depth=optional_int(data.get('output_bit_depth')),
            format=data.get('format'),
            codec=data.get('codec'),
        )
