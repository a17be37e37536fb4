from collections.abc import Mapping
import logging
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from graphviz import Digraph
import networkx as nx

logger = logging.getLogger(__name__)


class GraphFormatError(ValueError):
    """Raised when a graph document cannot be turned into a GraphStore"""


class GraphStore(Mapping):
    """A read-only dependency graph: package name -> ordered direct dependency names.

    Packages that only ever appear as a dependency are leaves; looking up their neighbors returns an empty
    sequence rather than raising. Neighbor lists are kept exactly as supplied, duplicates included.

    """

    def __init__(self, edges: Optional[Iterable[Tuple[str, Iterable[str]]]] = None):
        self._edges: Dict[str, Tuple[str, ...]] = {}
        if edges is not None:
            for package, dependencies in edges:
                self._edges[package] = tuple(dependencies)

    def neighbors(self, node: str) -> Sequence[str]:
        return self._edges.get(node, ())

    def __getitem__(self, node: str) -> Sequence[str]:
        return self._edges[node]

    def __iter__(self) -> Iterator[str]:
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    def __hash__(self):
        return hash(tuple(self._edges.items()))

    def __eq__(self, other):
        if isinstance(other, GraphStore):
            return self._edges == other._edges
        return super().__eq__(other)

    def __repr__(self):
        return f"{self.__class__.__name__}({self.to_obj()!r})"

    @property
    def nodes(self) -> List[str]:
        """Every package named in the graph, as a key or as a dependency, in first-seen order"""
        seen: Dict[str, None] = {}
        for package, dependencies in self._edges.items():
            seen.setdefault(package)
            for dep in dependencies:
                seen.setdefault(dep)
        return list(seen)

    @classmethod
    def from_dict(cls, obj) -> "GraphStore":
        """Validates a decoded JSON graph document of the form `{"name": ["dep", ...], ...}`"""
        if not isinstance(obj, dict):
            raise GraphFormatError(f"Expected a JSON object mapping package names to lists, got {type(obj).__name__}")
        edges: List[Tuple[str, List[str]]] = []
        for package, dependencies in obj.items():
            if not isinstance(package, str) or not package:
                raise GraphFormatError(f"Invalid package name {package!r}: expected a non-empty string")
            if not isinstance(dependencies, list):
                raise GraphFormatError(
                    f"Dependencies of {package!r} must be a list of package names, got {type(dependencies).__name__}"
                )
            for dep in dependencies:
                if not isinstance(dep, str) or not dep:
                    raise GraphFormatError(f"Invalid dependency {dep!r} of {package!r}: expected a non-empty string")
            edges.append((package, dependencies))
        return cls(edges)

    def to_obj(self) -> Dict[str, List[str]]:
        return {package: list(dependencies) for package, dependencies in self._edges.items()}

    def to_networkx(self) -> nx.DiGraph:
        """Returns a networkx view of this graph. Duplicate edges collapse into a single edge."""
        graph = nx.DiGraph()
        for node in self.nodes:
            graph.add_node(node)
        for package, dependencies in self._edges.items():
            for dep in dependencies:
                graph.add_edge(package, dep)
        return graph

    def to_dot(self, start: str, order: Optional[Sequence[str]] = None) -> Digraph:
        """Renders a Graphviz Dot graph of the packages reachable from `start`.

        If `order` is given, each package is labeled with its position in that sequence.

        """
        dot = Digraph(comment=f"Dependencies for {start}")
        positions: Dict[str, int] = {}
        if order is not None:
            positions = {name: i for i, name in enumerate(order)}
        node_ids: Dict[str, str] = {}

        def add_package(name: str) -> str:
            if name not in node_ids:
                node_id = f"package{len(node_ids)}"
                node_ids[name] = node_id
                if name in positions:
                    label = f"{positions[name] + 1}. {name}"
                else:
                    label = name
                shape = "doubleoctagon" if name == start else "rectangle"
                dot.node(node_id, label=label, shape=shape)
            return node_ids[name]

        edges_seen = set()
        to_expand = [start]
        add_package(start)
        while to_expand:
            package = to_expand.pop()
            pid = node_ids[package]
            for dep in self.neighbors(package):
                already_expanded = dep in node_ids
                did = add_package(dep)
                if (pid, did) not in edges_seen:
                    edges_seen.add((pid, did))
                    dot.edge(pid, did)
                if not already_expanded:
                    to_expand.append(dep)
        return dot
