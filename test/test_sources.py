import json
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import TestCase
from unittest.mock import MagicMock, patch

import pytest
import requests

from depwalk.graphs import GraphFormatError
from depwalk.sources import (
    GraphSource,
    LocalSource,
    RemoteSource,
    SourceAvailability,
    SourceError,
    TestFixtureSource,
    is_known_source,
    source_by_name,
    sources,
)


class TestRegistry(TestCase):
    def test_sources(self) -> None:
        names = {source.name for source in sources()}
        assert {"local", "remote", "test"} <= names
        assert sources() == {source_by_name(name) for name in names}

    def test_singletons(self) -> None:
        assert LocalSource() is LocalSource()
        assert source_by_name("local") is LocalSource()
        assert source_by_name("remote") is RemoteSource()
        assert source_by_name("test") is TestFixtureSource()

    def test_unknown(self) -> None:
        assert not is_known_source("ftp")
        with self.assertRaises(KeyError):
            source_by_name("ftp")

    def test_default_availability(self) -> None:
        for source in sources():
            assert source.is_available()
            assert isinstance(source, GraphSource)

    def test_availability(self) -> None:
        assert bool(SourceAvailability(True))
        unavailable = SourceAvailability(False, reason="offline")
        assert not unavailable
        assert unavailable.reason == "offline"
        with self.assertRaises(ValueError):
            SourceAvailability(False)


class TestLocalSource(TestCase):
    def test_graph(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "graph.json"
            path.write_text(json.dumps({"A": ["B", "C"], "C": ["D", "E"]}))
            document = LocalSource().fetch(str(path), "A")
        assert document.graph.to_obj() == {"A": ["B", "C"], "C": ["D", "E"]}
        assert document.location == str(path)

    def test_manifest(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "package.json"
            path.write_text(json.dumps({"name": "app", "dependencies": {"lodash": "^4.17.0"}}))
            document = LocalSource().fetch(str(path), "app")
        assert document.manifest is not None
        assert list(document.graph.neighbors("app")) == ["lodash"]

    def test_missing_file(self) -> None:
        with TemporaryDirectory() as tmpdir:
            missing = str(Path(tmpdir) / "missing.json")
            with self.assertRaises(SourceError) as cm:
                LocalSource().fetch(missing, "A")
        assert "missing.json" in str(cm.exception)

    def test_malformed(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "graph.json"
            path.write_text("{not json")
            with self.assertRaises(GraphFormatError):
                LocalSource().fetch(str(path), "A")

    def test_undecodable_file(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "graph.json"
            path.write_bytes(b'{"A": ["\xff"]}')
            with self.assertRaises(SourceError) as cm:
                LocalSource().fetch(str(path), "A")
        assert "Error decoding" in str(cm.exception)
        assert "graph.json" in str(cm.exception)


class TestRemoteSource(TestCase):
    URL = "https://example.com/package.json"

    @patch("depwalk.sources.requests.get")
    def test_fetch(self, mock_get: MagicMock) -> None:
        response = MagicMock()
        response.ok = True
        response.status_code = 200
        response.content = json.dumps({"dependencies": {"express": "~4.18.0"}}).encode("utf-8")
        mock_get.return_value = response

        document = RemoteSource().fetch(self.URL, "app")

        mock_get.assert_called_once()
        assert mock_get.call_args[0][0] == self.URL
        assert "timeout" in mock_get.call_args[1]
        assert list(document.graph.neighbors("app")) == ["express"]
        assert document.location == self.URL

    @patch("depwalk.sources.requests.get")
    def test_http_error(self, mock_get: MagicMock) -> None:
        response = MagicMock()
        response.ok = False
        response.status_code = 404
        response.reason = "Not Found"
        mock_get.return_value = response

        with self.assertRaises(SourceError) as cm:
            RemoteSource().fetch(self.URL, "app")
        assert "404" in str(cm.exception)

    @patch("depwalk.sources.requests.get")
    def test_connection_error(self, mock_get: MagicMock) -> None:
        mock_get.side_effect = requests.ConnectionError("connection refused")

        with self.assertRaises(SourceError) as cm:
            RemoteSource().fetch(self.URL, "app")
        assert self.URL in str(cm.exception)

    @patch("depwalk.sources.requests.get")
    def test_malformed(self, mock_get: MagicMock) -> None:
        response = MagicMock()
        response.ok = True
        response.content = b"<html>not json</html>"
        mock_get.return_value = response

        with self.assertRaises(GraphFormatError):
            RemoteSource().fetch(self.URL, "app")

    @pytest.mark.integration
    def test_npm_registry(self) -> None:
        document = RemoteSource().fetch("https://registry.npmjs.org/express/4.18.2", "express")
        assert document.manifest is not None
        assert "body-parser" in document.graph.neighbors("express")


class TestFixtureSourceTests(TestCase):
    def test_fixture(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "repo.txt"
            path.write_text("A: B C\nC: D E\n")
            document = TestFixtureSource().fetch(str(path), "A")
        assert document.manifest is None
        assert document.graph.to_obj() == {"A": ["B", "C"], "C": ["D", "E"]}

    def test_missing_file(self) -> None:
        with self.assertRaises(SourceError):
            TestFixtureSource().fetch("/nonexistent/repo.txt", "A")

    def test_undecodable_fixture(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "repo.txt"
            path.write_bytes(b"A: B \xfe\xff\n")
            with self.assertRaises(SourceError) as cm:
                TestFixtureSource().fetch(str(path), "A")
        assert "repo.txt" in str(cm.exception)
