# Copyright 2026 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Node hierarchy checks: the node graph must be a forest.

Only in-range ``children`` entries are considered here; out-of-range ones
are reported by the reference resolver as dangling references.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set, Tuple

from ..models.document import Document
from ..report import REFERENCE_STAGE, Issue, IssueKind

logger = logging.getLogger(__name__)

_WHITE, _GREY, _BLACK = 0, 1, 2


@dataclass
class Hierarchy:
    """Parent map plus the issues found while building it."""

    parents: Dict[int, int] = field(default_factory=dict)
    issues: List[Issue] = field(default_factory=list)
    cycles: List[Tuple[int, ...]] = field(default_factory=list)


def _issue(message: str, node: int, chain: Sequence[int], field_name: str, json_path: str) -> Issue:
    return Issue(
        stage=REFERENCE_STAGE,
        kind=IssueKind.INVALID_HIERARCHY,
        message=message,
        entity_kind="node",
        entity_index=node,
        field_name=field_name,
        nodes=tuple(chain),
        json_path=json_path,
    )


def _canonical_cycle(cycle: Sequence[int]) -> Tuple[int, ...]:
    """Rotate a cycle so it starts at its smallest node index."""
    start = cycle.index(min(cycle))
    return tuple(cycle[start:]) + tuple(cycle[:start])


def _children_graph(document: Document) -> List[List[int]]:
    count = len(document.nodes)
    return [
        [c for c in node.children if 0 <= c < count]
        for node in document.nodes
    ]


def find_cycles(graph: Sequence[Sequence[int]]) -> List[Tuple[int, ...]]:
    """Return every distinct cycle closed by a back edge, canonicalized.

    Iterative depth-first search; node indices are visited in ascending
    order so the result does not depend on dictionary or set ordering.
    """
    color = [_WHITE] * len(graph)
    cycles: List[Tuple[int, ...]] = []
    seen: Set[Tuple[int, ...]] = set()

    for root in range(len(graph)):
        if color[root] != _WHITE:
            continue
        path: List[int] = [root]
        position: Dict[int, int] = {root: 0}
        stack: List[Tuple[int, int]] = [(root, 0)]
        color[root] = _GREY
        while stack:
            node, next_child = stack[-1]
            children = graph[node]
            if next_child >= len(children):
                stack.pop()
                path.pop()
                del position[node]
                color[node] = _BLACK
                continue
            stack[-1] = (node, next_child + 1)
            child = children[next_child]
            if color[child] == _GREY:
                cycle = _canonical_cycle(path[position[child]:])
                if cycle not in seen:
                    seen.add(cycle)
                    cycles.append(cycle)
            elif color[child] == _WHITE:
                color[child] = _GREY
                position[child] = len(path)
                path.append(child)
                stack.append((child, 0))
    return cycles


def build_hierarchy(document: Document) -> Hierarchy:
    """Build the node-parent map and report every hierarchy violation."""
    result = Hierarchy()
    extra_parents: Dict[int, List[int]] = {}

    for parent, node in enumerate(document.nodes):
        listed: Set[int] = set()
        for position, child in enumerate(node.children):
            if not 0 <= child < len(document.nodes):
                continue
            if child in listed:
                result.issues.append(
                    _issue(
                        f"Node {child} is listed more than once in the children of node {parent}",
                        child,
                        (parent, child),
                        f"children[{position}]",
                        f"/nodes/{parent}/children/{position}",
                    )
                )
                continue
            listed.add(child)
            if child in result.parents:
                extra_parents.setdefault(child, []).append(parent)
            else:
                result.parents[child] = parent

    for child in sorted(extra_parents):
        first = result.parents[child]
        for other in extra_parents[child]:
            result.issues.append(
                _issue(
                    f"Node {child} has more than one parent: nodes {first} and {other}",
                    child,
                    (first, other, child),
                    "children",
                    f"/nodes/{other}/children",
                )
            )

    result.cycles = find_cycles(_children_graph(document))
    on_cycle: Set[int] = set()
    for cycle in result.cycles:
        on_cycle.update(cycle)
        chain = " -> ".join(str(n) for n in cycle + (cycle[0],))
        result.issues.append(
            _issue(
                f"Node hierarchy contains a cycle: {chain}",
                cycle[0],
                cycle,
                "children",
                f"/nodes/{cycle[0]}/children",
            )
        )

    for scene_idx, scene in enumerate(document.scenes):
        listed = set()
        for position, root in enumerate(scene.nodes):
            if not 0 <= root < len(document.nodes):
                continue
            path = f"/scenes/{scene_idx}/nodes/{position}"
            if root in listed:
                result.issues.append(
                    _issue(
                        f"Node {root} is listed more than once in scene {scene_idx}",
                        root, (root,), f"scenes[{scene_idx}].nodes[{position}]", path,
                    )
                )
                continue
            listed.add(root)
            if root in result.parents and root not in on_cycle:
                result.issues.append(
                    _issue(
                        f"Node {root} is a root of scene {scene_idx} but is a child of node {result.parents[root]}",
                        root,
                        (result.parents[root], root),
                        f"scenes[{scene_idx}].nodes[{position}]",
                        path,
                    )
                )

    if result.issues:
        logger.debug(f"Hierarchy check found {len(result.issues)} issue(s)")
    return result
