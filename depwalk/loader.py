from dataclasses import dataclass, field
import json
import logging
from typing import Dict, List, Optional, Tuple, Union

from semantic_version import NpmSpec, SimpleSpec
from semantic_version.base import BaseSpec as SemanticVersion

from .graphs import GraphFormatError, GraphStore

logger = logging.getLogger(__name__)


def parse_spec(spec: str) -> Optional[SemanticVersion]:
    """Parses an npm-style version specifier, returning None if it cannot be parsed"""
    try:
        return NpmSpec(spec)
    except ValueError:
        pass
    try:
        return SimpleSpec(spec)
    except ValueError:
        pass
    # Sometimes specs have whitespace, which trips up the parser
    no_whitespace = "".join(c for c in spec if c != " ")
    if no_whitespace != spec:
        return parse_spec(no_whitespace)
    return None


class DirectDependency:
    def __init__(self, package: str, version_string: str = "*"):
        self.package: str = package
        self.version_string: str = version_string
        semantic_version = parse_spec(version_string)
        if semantic_version is None:
            logger.warning("Unable to compute the semantic version of %s (%s)", package, version_string)
            semantic_version = SimpleSpec("*")
        self.semantic_version: SemanticVersion = semantic_version

    @property
    def constraint(self) -> str:
        """The version specifier as parsed; `*` when it could not be parsed"""
        return str(self.semantic_version)

    def __str__(self):
        return f"{self.package}@{self.version_string}"

    def __eq__(self, other):
        return (
            isinstance(other, DirectDependency)
            and self.package == other.package
            and self.version_string == other.version_string
        )

    def __hash__(self):
        return hash((self.package, self.version_string))


@dataclass
class Manifest:
    """A `package.json`-style manifest listing one package's direct dependencies"""

    name: Optional[str]
    version: Optional[str]
    dependencies: List[DirectDependency] = field(default_factory=list)

    @staticmethod
    def is_manifest(obj) -> bool:
        # graph documents only ever map names to lists
        return isinstance(obj, dict) and (
            isinstance(obj.get("dependencies"), dict) or isinstance(obj.get("name"), str)
        )

    @classmethod
    def from_obj(cls, obj: dict) -> "Manifest":
        dependencies = obj.get("dependencies", {})
        if not isinstance(dependencies, dict):
            raise GraphFormatError(
                f"Expected `dependencies` to map package names to versions, got {type(dependencies).__name__}"
            )
        direct: List[DirectDependency] = []
        for name, version in dependencies.items():
            if not name:
                raise GraphFormatError("Manifest lists a dependency with an empty name")
            if not isinstance(version, str):
                raise GraphFormatError(f"Version of dependency {name!r} must be a string, got {version!r}")
            direct.append(DirectDependency(name, version))
        version = obj.get("version")
        return cls(
            name=obj.get("name"),
            version=None if version is None else str(version),
            dependencies=direct,
        )

    def to_graph(self, package_name: str) -> GraphStore:
        if self.name is not None and self.name != package_name:
            logger.info(f"Manifest declares package {self.name!r}; rooting its dependencies at {package_name!r}")
        return GraphStore([(package_name, [dep.package for dep in self.dependencies])])


@dataclass
class GraphDocument:
    """A loaded graph, plus the manifest it came from if it was read from one.

    A manifest only describes `root`, the package it was attached to when it was loaded.

    """

    graph: GraphStore
    location: str
    manifest: Optional[Manifest] = None
    root: Optional[str] = None

    def direct_dependencies(self, package_name: str) -> List[DirectDependency]:
        if self.manifest is not None and package_name == self.root:
            return list(self.manifest.dependencies)
        return [DirectDependency(name) for name in dict.fromkeys(self.graph.neighbors(package_name))]

    def package_version(self, package_name: str) -> Optional[str]:
        if self.manifest is not None and package_name == self.root:
            return self.manifest.version
        return None


def load_graph(data: Union[str, bytes], package_name: str, location: str = "<string>") -> GraphDocument:
    """Parses a JSON graph document or a package manifest.

    Raises a GraphFormatError rather than ever returning a partially populated graph.

    """
    try:
        obj = json.loads(data)
    except ValueError as e:
        raise GraphFormatError(f"Error parsing JSON from {location}: {e!s}") from e
    if Manifest.is_manifest(obj):
        manifest = Manifest.from_obj(obj)
        logger.info(f"Loaded a manifest with {len(manifest.dependencies)} direct dependencies from {location}")
        return GraphDocument(
            graph=manifest.to_graph(package_name), location=location, manifest=manifest, root=package_name
        )
    try:
        graph = GraphStore.from_dict(obj)
    except GraphFormatError as e:
        raise GraphFormatError(f"Invalid dependency graph in {location}: {e!s}") from e
    logger.info(f"Loaded a dependency graph of {len(graph)} packages from {location}")
    return GraphDocument(graph=graph, location=location)


def parse_fixture(text: str, location: str = "<string>") -> GraphStore:
    """Parses the plain-text fixture format, one `PACKAGE: DEP DEP ...` entry per line.

    Blank lines and `#` comments are ignored. A package listed on several lines accumulates all of them.

    """
    edges: Dict[str, List[str]] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.split("#", 1)[0].strip()
        if not line:
            continue
        if ":" not in line:
            raise GraphFormatError(f"{location}:{lineno}: expected `PACKAGE: DEPENDENCIES`, got {line!r}")
        package, deps = line.split(":", 1)
        package = package.strip()
        if not package:
            raise GraphFormatError(f"{location}:{lineno}: missing package name before `:`")
        edges.setdefault(package, []).extend(deps.split())
    pairs: List[Tuple[str, List[str]]] = list(edges.items())
    logger.info(f"Loaded a test fixture of {len(pairs)} packages from {location}")
    return GraphStore(pairs)
