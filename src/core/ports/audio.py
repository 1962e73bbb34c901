# -*- coding: utf-8 -*-
"""
Audio Engine Port Interface

Defines an abstract interface for audio engines, ensuring the playback service
does not depend on specific audio backend implementations.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol, runtime_checkable

from core.audio_engine import PlayerState


@runtime_checkable
class IAudioEngine(Protocol):
    """Audio Engine Interface

    Engines push state through the registered callbacks.
    Current implementations: VLCEngine, NullAudioEngine
    """

    @property
    def state(self) -> PlayerState:
        """Current playback state"""
        ...

    @property
    def volume(self) -> float:
        """Current volume (0.0 - 1.0)"""
        ...

    def load(self, url: str) -> bool:
        """Open a stream URL

        Returns:
            True if the stream was opened
        """
        ...

    def play(self) -> bool:
        ...

    def pause(self) -> None:
        ...

    def resume(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def seek(self, position_ms: int) -> bool:
        """Seek to a specified position

        Returns:
            True if the engine accepted the seek
        """
        ...

    def supports_seek(self, url: Optional[str], source: Optional[str]) -> bool:
        ...

    def get_position(self) -> int:
        ...

    def get_duration(self) -> int:
        ...

    def set_volume(self, volume: float) -> None:
        ...

    def set_on_end(self, callback: Optional[Callable]) -> None:
        """Set playback completion callback (receives PlaybackEndInfo)"""
        ...

    def set_on_error(self, callback: Optional[Callable[[str], None]]) -> None:
        ...

    def set_on_position(self, callback: Optional[Callable[[int], None]]) -> None:
        ...

    def set_on_duration(self, callback: Optional[Callable[[int], None]]) -> None:
        ...

    def set_on_playing(self, callback: Optional[Callable[[bool], None]]) -> None:
        ...

    def get_engine_name(self) -> str:
        ...

    def cleanup(self) -> None:
        ...
