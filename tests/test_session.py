import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests

from deadlinesync.config import Settings
from deadlinesync.session import (
    PortalSession,
    clear_session,
    import_session,
    is_valid,
    load_session,
    save_session_state,
    session_exists,
)

STATE = {
    "cookies": [
        {"name": "d2lSessionVal", "value": "abc", "domain": "portal.example.edu", "path": "/"},
        {"name": "broken"},
    ],
    "origins": [],
}


def _response(url: str, text: str = "") -> mock.Mock:
    resp = mock.Mock()
    resp.url = url
    resp.text = text
    resp.raise_for_status.return_value = None
    return resp


class TestSessionFiles(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.settings = Settings(base_url="https://portal.example.edu", data_dir=self.dir / "data")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_no_session(self) -> None:
        self.assertFalse(session_exists(self.settings))
        self.assertIsNone(load_session(self.settings))

    def test_import_load_clear(self) -> None:
        src = self.dir / "state.json"
        src.write_text(json.dumps(STATE), encoding="utf-8")

        dest = import_session(self.settings, src)
        self.assertEqual(dest, self.settings.session_path)
        self.assertTrue(session_exists(self.settings))

        session = load_session(self.settings)
        self.assertIsNotNone(session)
        with session:
            self.assertEqual(session.http.cookies.get("d2lSessionVal"), "abc")
            self.assertIsNone(session.http.cookies.get("broken"))
            self.assertEqual(session.url("/d2l/home"), "https://portal.example.edu/d2l/home")

        self.assertTrue(clear_session(self.settings))
        self.assertFalse(clear_session(self.settings))

    def test_saved_state_loads_back(self) -> None:
        dest = save_session_state(self.settings.session_path, STATE)
        self.assertEqual(dest, self.settings.session_path)
        self.assertEqual(json.loads(dest.read_text(encoding="utf-8")), STATE)

        session = load_session(self.settings)
        self.assertIsNotNone(session)
        with session:
            self.assertEqual(session.http.cookies.get("d2lSessionVal"), "abc")

    def test_import_rejects_garbage(self) -> None:
        src = self.dir / "state.json"
        src.write_text("not json", encoding="utf-8")
        with self.assertRaises(ValueError):
            import_session(self.settings, src)
        self.assertFalse(session_exists(self.settings))


class TestIsValid(unittest.TestCase):
    def _session(self, response=None, error=None) -> PortalSession:
        http = mock.Mock(spec=requests.Session)
        if error is not None:
            http.get.side_effect = error
        else:
            http.get.return_value = response
        return PortalSession("https://portal.example.edu", http)

    def test_portal_home_is_valid(self) -> None:
        session = self._session(_response("https://portal.example.edu/d2l/home"))
        self.assertTrue(is_valid(session))

    def test_login_redirect_is_invalid(self) -> None:
        session = self._session(_response("https://sso.example.edu/adfs/ls/?wa=wsignin"))
        self.assertFalse(is_valid(session))

    def test_network_error_is_invalid(self) -> None:
        session = self._session(error=requests.ConnectionError("offline"))
        self.assertFalse(is_valid(session))

    def test_falls_back_to_page_content(self) -> None:
        session = self._session(_response("https://portal.example.edu/", '<div class="d2l-homepage"></div>'))
        self.assertTrue(is_valid(session))


if __name__ == "__main__":
    unittest.main()
