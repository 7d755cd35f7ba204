"""Tests for node hierarchy checks"""

import pytest

from gltf_loader import check_references, parse
from gltf_loader.report import IssueKind
from gltf_loader.resolvers.node_hierarchy import find_cycles

from conftest import payload


def _hierarchy_issues(**sections):
    report = check_references(parse(payload(**sections)))
    return report.errors_of(IssueKind.INVALID_HIERARCHY)


@pytest.mark.parametrize("nodes, child", [
    ([{"children": [2]}, {"children": [2]}, {}], 2),
    ([{}, {"children": [0]}, {"children": [0]}], 0),
    ([{"children": [1]}, {}, {"children": [1]}], 1),
])
def test_two_parents_always_reported(nodes, child):
    issues = _hierarchy_issues(nodes=nodes)

    assert len(issues) == 1
    assert issues[0].entity_index == child
    assert "more than one parent" in issues[0].message


def test_three_parents_reported_per_extra_parent():
    issues = _hierarchy_issues(nodes=[{"children": [3]}, {"children": [3]}, {"children": [3]}, {}])
    assert len(issues) == 2
    assert {i.nodes for i in issues} == {(0, 1, 3), (0, 2, 3)}


def test_two_node_cycle_reported_once():
    """A -> B -> A under a scene root gives one issue naming the minimal cycle"""
    issues = _hierarchy_issues(
        scenes=[{"nodes": [0]}],
        nodes=[{"children": [1]}, {"children": [0]}],
    )

    assert len(issues) == 1
    assert issues[0].nodes == (0, 1)
    assert "0 -> 1 -> 0" in issues[0].message


def test_cycle_canonical_regardless_of_entry_point():
    issues = _hierarchy_issues(nodes=[{}, {"children": [3]}, {"children": [1]}, {"children": [2]}])

    assert len(issues) == 1
    assert issues[0].nodes == (1, 3, 2)


def test_self_loop():
    issues = _hierarchy_issues(nodes=[{"children": [0]}])

    assert len(issues) == 1
    assert issues[0].nodes == (0,)


def test_scene_root_with_parent():
    issues = _hierarchy_issues(
        scenes=[{"nodes": [0, 1]}],
        nodes=[{"children": [1]}, {}],
    )

    assert len(issues) == 1
    assert issues[0].entity_index == 1
    assert issues[0].json_path == "/scenes/0/nodes/1"


def test_duplicate_entries():
    issues = _hierarchy_issues(
        scenes=[{"nodes": [0, 0]}],
        nodes=[{"children": [1, 1]}, {}],
    )

    assert len(issues) == 2
    assert {i.json_path for i in issues} == {"/nodes/0/children/1", "/scenes/0/nodes/1"}


def test_forest_has_no_issues():
    report = check_references(parse(payload(
        scenes=[{"nodes": [0, 3]}],
        nodes=[{"children": [1, 2]}, {}, {}, {"children": [4]}, {}],
    )))

    assert report.ok
    assert dict(report.parents) == {1: 0, 2: 0, 4: 3}


def test_out_of_range_children_are_only_dangling():
    report = check_references(parse(payload(nodes=[{"children": [5]}])))

    assert [i.kind for i in report.errors] == [IssueKind.DANGLING_REFERENCE]


def test_find_cycles():
    assert find_cycles([[1], [2], [0]]) == [(0, 1, 2)]
    assert find_cycles([[1], [2], []]) == []
    assert find_cycles([[0]]) == [(0,)]
    assert find_cycles([[1, 2], [0], [0]]) == [(0, 1), (0, 2)]
