"""Iterative traversals over a :class:`GraphStore`.

Both traversals keep their own explicit stack instead of recursing, so the depth of the dependency graph is
bounded only by memory and never by the interpreter's recursion limit.

"""
from dataclasses import dataclass
import logging
from typing import List, Sequence, Set

from .graphs import GraphStore

logger = logging.getLogger(__name__)


class CycleError(ValueError):
    """Raised by a strict topological traversal that re-enters a package still being explored"""

    def __init__(self, cycle: Sequence[str]):
        self.cycle: List[str] = list(cycle)
        super().__init__(f"Dependency cycle detected: {' -> '.join(self.cycle)}")


@dataclass
class TraversalFrame:
    """Progress through one package's dependencies.

    `dependencies` is captured when the frame is created; `next_child` is the index of the next dependency to
    explore. A frame is `entered` the first time it reaches the top of the stack.

    """

    node: str
    dependencies: Sequence[str]
    next_child: int = 0
    entered: bool = False

    @property
    def exhausted(self) -> bool:
        return self.next_child >= len(self.dependencies)


def depth_first_order(graph: GraphStore, start: str) -> List[str]:
    """Returns every package reachable from `start` in the order it is first popped off the stack.

    Neighbors are pushed in the order the graph lists them, so the last-listed dependency is explored first.

    """
    stack: List[str] = [start]
    visited: Set[str] = set()
    order: List[str] = []
    while stack:
        node = stack.pop()
        if node in visited:
            continue
        visited.add(node)
        order.append(node)
        for dep in graph.neighbors(node):
            if dep not in visited:
                stack.append(dep)
    logger.debug(f"Depth-first traversal from {start} visited {len(order)} packages")
    return order


def topological_order(graph: GraphStore, start: str, strict: bool = False) -> List[str]:
    """Returns the packages reachable from `start` in finish order, dependencies before their dependents.

    The direct dependencies of `start` are stacked up front in the order they are listed, so, as in
    :func:`depth_first_order`, the last-listed one is explored first. Every other package walks its own
    dependencies in listed order through its frame's child index, and is appended once that index runs off the
    end of its list. `start` itself always comes last.

    A dependency that was already visited is never re-entered, so on a cycle the package that closes the cycle
    is simply skipped and the result is still a permutation of the reachable set. With `strict=True`, closing a
    cycle raises a :class:`CycleError` instead.

    """
    visited: Set[str] = {start}
    # packages whose frames have been entered but not yet finished
    in_progress: Set[str] = {start}
    stack: List[TraversalFrame] = []
    for dep in graph.neighbors(start):
        if dep != start:
            stack.append(TraversalFrame(dep, graph.neighbors(dep)))
        elif strict:
            raise CycleError([start, start])

    order: List[str] = []
    while stack:
        top = stack[-1]
        if not top.entered:
            if top.node in visited:
                # stacked more than once as a dependency of `start`, and already reached through another path
                stack.pop()
                continue
            top.entered = True
            visited.add(top.node)
            in_progress.add(top.node)
        if not top.exhausted:
            dep = top.dependencies[top.next_child]
            top.next_child += 1
            if dep not in visited:
                stack.append(TraversalFrame(dep, graph.neighbors(dep)))
            elif strict and dep in in_progress:
                chain = [start] + [frame.node for frame in stack if frame.entered]
                raise CycleError(chain[chain.index(dep):] + [dep])
            continue
        stack.pop()
        in_progress.discard(top.node)
        order.append(top.node)
    order.append(start)
    logger.debug(f"Topological traversal from {start} ordered {len(order)} packages")
    return order
