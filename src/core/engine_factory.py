"""
Audio Engine Factory

Creates stream playback engines from a name registry with a fallback order.
"""

import logging
from typing import List, Type, Dict, Optional

from core.audio_engine import AudioEngineBase, NullAudioEngine

logger = logging.getLogger(__name__)

# Engine registry
_ENGINE_REGISTRY: Dict[str, Type[AudioEngineBase]] = {}


def register_engine(name: str, engine_class: Type[AudioEngineBase]) -> None:
    """
    Register an audio engine.

    Args:
        name: Engine name identifier
        engine_class: Engine class
    """
    _ENGINE_REGISTRY[name] = engine_class


# Register built-in engines
register_engine("null", NullAudioEngine)

try:
    from core.vlc_engine import VLCEngine
    register_engine("vlc", VLCEngine)
except Exception:
    logger.debug("VLC backend unavailable")


class AudioEngineFactory:
    """
    Audio Engine Factory

    Usage Example:
        # Create a specific backend, falling back when it cannot start
        engine = AudioEngineFactory.create("vlc")

        # Get list of available backends
        backends = AudioEngineFactory.get_available_backends()
    """

    # Backend priority (fallback order)
    PRIORITY_ORDER = ["vlc", "null"]

    @classmethod
    def create(cls, backend: str = "vlc", allow_fallback: bool = True) -> AudioEngineBase:
        """
        Create a specified audio engine.

        Args:
            backend: Backend name ("vlc", "null")
            allow_fallback: Try other backends by priority when this one fails

        Raises:
            RuntimeError: If no backends are available
        """
        if backend in _ENGINE_REGISTRY:
            try:
                engine = _ENGINE_REGISTRY[backend]()
                logger.info("Using audio backend: %s", backend)
                return engine
            except Exception as e:
                logger.warning("Failed to create %s backend: %s", backend, e)
        else:
            logger.warning("Unknown audio backend: %s", backend)

        if not allow_fallback:
            raise RuntimeError(f"Audio backend '{backend}' is not available")
        return cls.create_best_available(exclude=[backend])

    @classmethod
    def create_best_available(cls, exclude: Optional[List[str]] = None) -> AudioEngineBase:
        """Create the first backend in priority order that starts."""
        exclude = exclude or []

        for backend in cls.PRIORITY_ORDER:
            if backend in exclude or backend not in _ENGINE_REGISTRY:
                continue
            try:
                engine = _ENGINE_REGISTRY[backend]()
                logger.info("Using audio backend: %s", backend)
                return engine
            except Exception as e:
                logger.debug("Backend %s unavailable: %s", backend, e)

        raise RuntimeError("No audio backends available. Please install python-vlc.")

    @classmethod
    def get_available_backends(cls) -> List[str]:
        """Backends whose dependencies are importable, sorted by priority."""
        return [name for name in cls.PRIORITY_ORDER if cls.is_available(name)]

    @classmethod
    def is_available(cls, backend: str) -> bool:
        engine_class = _ENGINE_REGISTRY.get(backend)
        if engine_class is None:
            return False
        try:
            return bool(engine_class.probe())
        except Exception:
            return False
