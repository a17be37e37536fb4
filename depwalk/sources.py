import functools
from abc import abstractmethod
import logging
from pathlib import Path
from typing import FrozenSet

import requests

from .loader import GraphDocument, load_graph, parse_fixture

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0


class SourceError(ValueError):
    """Raised when a graph source cannot be read"""


class SourceAvailability:
    def __init__(self, is_available: bool, reason: str = ""):
        if not is_available and not reason:
            raise ValueError("You must provide a reason if `not is_available`")
        self.is_available: bool = is_available
        self.reason: str = reason

    def __bool__(self):
        return self.is_available


class GraphSource:
    """Fetches a dependency graph from some location"""

    name: str
    description: str
    _instance = None

    def __new__(class_, *args, **kwargs):
        """A singleton (Only one default instance exists)"""
        if not isinstance(class_._instance, class_):
            class_._instance = super().__new__(class_, *args, **kwargs)
        return class_._instance

    def __init_subclass__(cls, **kwargs):
        if not hasattr(cls, "name") or cls.name is None:
            raise TypeError(f"{cls.__name__} must define a `name` class member")
        elif not hasattr(cls, "description") or cls.description is None:
            raise TypeError(f"{cls.__name__} must define a `description` class member")
        sources.cache_clear()
        source_by_name.cache_clear()

    @abstractmethod
    def fetch(self, location: str, package_name: str) -> GraphDocument:
        """Loads the graph found at `location`, rooting manifests at `package_name`"""
        raise NotImplementedError()

    def is_available(self) -> SourceAvailability:
        return SourceAvailability(True)

    def __hash__(self):
        return hash(self.name)

    def __eq__(self, other):
        return isinstance(other, GraphSource) and other.name == self.name


@functools.lru_cache()
def sources() -> FrozenSet[GraphSource]:
    """Collection of all the default instances of GraphSources"""
    return frozenset(cls() for cls in GraphSource.__subclasses__())


@functools.lru_cache()
def source_by_name(name: str) -> GraphSource:
    """Finds a source instance by name. The result is cached."""
    for instance in sources():
        if instance.name == name:
            return instance
    raise KeyError(name)


def is_known_source(name: str) -> bool:
    """Checks if name is a valid/known source name"""
    try:
        source_by_name(name)
        return True
    except KeyError:
        return False


def _read_file(location: str) -> str:
    path = Path(location)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise SourceError(f"Error reading {path!s}: {e.strerror or e!s}") from e
    except UnicodeDecodeError as e:
        raise SourceError(f"Error decoding {path!s}: {e!s}") from e


class LocalSource(GraphSource):
    name = "local"
    description = "reads a JSON dependency graph or package.json manifest from the local filesystem"

    def fetch(self, location: str, package_name: str) -> GraphDocument:
        logger.debug(f"Reading {location}")
        return load_graph(_read_file(location), package_name, location=location)


class RemoteSource(GraphSource):
    name = "remote"
    description = "downloads a JSON dependency graph or package.json manifest over HTTP(S)"

    def fetch(self, location: str, package_name: str) -> GraphDocument:
        logger.info(f"Downloading {location}")
        try:
            response = requests.get(location, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise SourceError(f"Error downloading {location}: {e!s}") from e
        if not response.ok:
            raise SourceError(f"Unable to fetch {location}: HTTP {response.status_code} {response.reason}")
        return load_graph(response.content, package_name, location=location)


class TestFixtureSource(GraphSource):
    name = "test"
    description = "reads a plain-text test repository of `PACKAGE: DEP DEP ...` lines"

    # not a test case, despite the name
    __test__ = False

    def fetch(self, location: str, package_name: str) -> GraphDocument:
        return GraphDocument(graph=parse_fixture(_read_file(location), location=location), location=location)

