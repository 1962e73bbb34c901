"""
Music Aggregator Client - Main Entry Point

Headless command line front end over the client core.
"""

import argparse
import getpass
import logging
import os
import sys
import threading

# Add src to path
src_path = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, src_path)

logger = logging.getLogger("main")


def _configure_logging(config, verbose: bool) -> None:
    level_name = "DEBUG" if verbose else str(config.get("logging.level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="music-client", description="Multi-service music aggregator client")
    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("health", help="Check that the backend is reachable")

    search = commands.add_parser("search", help="Search the streaming catalogs")
    search.add_argument("query")
    search.add_argument("--type", default="tracks", choices=["tracks", "albums", "playlists", "all"])
    search.add_argument("--service", action="append", dest="services",
                        help="Service to search; repeat for a multi-service search")
    search.add_argument("--page", type=int, default=1)
    search.add_argument("--library", action="store_true", help="Search your own library")

    play = commands.add_parser("play", help="Stream a track until it ends")
    play.add_argument("track_id")
    play.add_argument("--source", required=True)

    login = commands.add_parser("login", help="Sign in and store the session")
    login.add_argument("email")
    return parser


def _cmd_health(facade) -> int:
    reachable = facade.check_backend()
    print("backend reachable" if reachable else "backend unreachable")
    return 0 if reachable else 1


def _cmd_search(facade, args) -> int:
    from models.search import SearchType

    if args.services:
        if len(args.services) == 1:
            facade.select_service(args.services[0])
        else:
            if not facade.use_multi_service:
                facade.toggle_multi_service()
            facade.clear_service_selection()
            for service in args.services:
                facade.toggle_service_selection(service)

    search_type = SearchType(args.type)
    if args.library:
        results = facade.search_library(args.query, search_type)
    else:
        results = facade.search(args.query, search_type, page=args.page)
    if results is None:
        print("empty query")
        return 2

    for track in results.tracks:
        print(f"[track] {track.id}\t{track.display_name}\t{track.formatted_duration}\t{track.source}")
    for album in results.albums:
        print(f"[album] {album.id}\t{album.artist} - {album.title}")
    for playlist in results.playlists:
        print(f"[playlist] {playlist.id}\t{playlist.name}")
    print(f"{results.total} results (offset {results.offset})")
    return 0


def _cmd_play(facade, args) -> int:
    from app.events import EventType
    from models.track import Track

    finished = threading.Event()
    facade.subscribe(EventType.TRACK_ENDED, lambda _data: finished.set())
    facade.subscribe(EventType.PLAYBACK_STOPPED, lambda _data: finished.set())

    track = Track(id=args.track_id, title=args.track_id, source=args.source)
    if not facade.play_track(track, clear_queue=False):
        print(f"playback failed: {facade.playback_state.error}")
        return 1

    print(f"playing {args.track_id} ({facade.playback_state.current_track.source}); Ctrl-C to stop")
    try:
        finished.wait()
    except KeyboardInterrupt:
        facade.stop()
    return 0


def _cmd_login(facade, args) -> int:
    password = getpass.getpass("Password: ")
    if facade.login(args.email, password):
        print(f"signed in as {facade.current_user.username or facade.current_user.email}")
        return 0
    print("login failed")
    return 1


def main(argv=None) -> int:
    """Application entry point"""
    args = _build_parser().parse_args(argv)

    from services.config_service import ConfigService
    config = ConfigService(args.config)
    _configure_logging(config, args.verbose)
    logger.debug("Command: %s", args.command)

    # Create dependency container (composition root)
    from app.container_factory import AppContainerFactory
    needs_audio = args.command == "play"
    engine = None
    if not needs_audio:
        from core.audio_engine import NullAudioEngine
        engine = NullAudioEngine()
    container = AppContainerFactory.create(config_path=args.config, engine=engine, start_monitoring=False)

    facade = container.facade
    try:
        if args.command == "health":
            return _cmd_health(facade)
        if args.command == "search":
            return _cmd_search(facade, args)
        if args.command == "play":
            return _cmd_play(facade, args)
        if args.command == "login":
            return _cmd_login(facade, args)
        return 2
    finally:
        container.cleanup()


if __name__ == "__main__":
    sys.exit(main())
