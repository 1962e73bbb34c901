"""
Command line front end tests (facade mocked)
"""

from unittest.mock import MagicMock

import main
from models.search import SearchResults, SearchType
from models.track import Track


class TestSearchCommand:

    def setup_method(self):
        self.facade = MagicMock()
        self.facade.use_multi_service = False
        self.facade.search.return_value = SearchResults(
            tracks=[Track(id="t1", title="Song", artist="Band", duration=61, source="qobuz")], total=1,
        )

    def _run(self, *argv):
        args = main._build_parser().parse_args(["search", *argv])
        return main._cmd_search(self.facade, args)

    def test_single_service(self, capsys):
        assert self._run("daft punk", "--service", "tidal", "--page", "2") == 0

        self.facade.select_service.assert_called_once_with("tidal")
        self.facade.search.assert_called_once_with("daft punk", SearchType.TRACKS, page=2)
        assert "t1\tBand - Song\t01:01\tqobuz" in capsys.readouterr().out

    def test_several_services_enable_multi_service(self):
        self._run("x", "--service", "qobuz", "--service", "tidal")

        self.facade.toggle_multi_service.assert_called_once()
        self.facade.clear_service_selection.assert_called_once()
        assert [c.args[0] for c in self.facade.toggle_service_selection.call_args_list] == ["qobuz", "tidal"]

    def test_library(self):
        self.facade.search_library.return_value = SearchResults()
        self._run("mine", "--library", "--type", "albums")

        self.facade.search_library.assert_called_once_with("mine", SearchType.ALBUMS)

    def test_blank_query(self):
        self.facade.search.return_value = None
        assert self._run("  ") == 2


def test_health_command_exit_code(capsys):
    facade = MagicMock()
    facade.check_backend.return_value = False

    assert main._cmd_health(facade) == 1
    assert "unreachable" in capsys.readouterr().out
