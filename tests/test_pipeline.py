"""Tests for the staged loading pipeline"""

from concurrent.futures import ThreadPoolExecutor

from gltf_loader import Stage, load
from gltf_loader.report import IssueKind

from conftest import IDENTITY_MATRIX, payload


EXAMPLE = b'{"asset":{"version":"2.0"},"scenes":[{"nodes":[0]}],"nodes":[{"children":[1]},{}]}'


def test_example_reaches_validated():
    result = load(EXAMPLE)

    assert result.stage is Stage.VALIDATED
    assert result.ok
    assert result.errors == []
    assert result.warnings == []
    assert result.document.scene is None
    assert len(result.document.nodes) == 2


def test_parse_failure_stops_in_unparsed():
    result = load(b'{"asset": ')

    assert result.stage is Stage.UNPARSED
    assert result.document is None
    assert [i.kind for i in result.errors] == [IssueKind.MALFORMED_DOCUMENT]


def test_reference_failure_stops_in_parsed():
    result = load(payload(nodes=[{"children": [0]}, {"mesh": 1}]))

    assert result.stage is Stage.PARSED
    assert not result.ok
    assert {i.kind for i in result.errors} == {IssueKind.DANGLING_REFERENCE, IssueKind.INVALID_HIERARCHY}


def test_validation_failure_stops_in_reference_checked():
    result = load(payload(nodes=[{"matrix": IDENTITY_MATRIX, "rotation": [0, 0, 0, 1]}]))

    assert result.stage is Stage.REFERENCE_CHECKED
    assert [i.stage for i in result.errors] == ["validate"]


def test_issue_records_serializable():
    result = load(payload(nodes=[{"mesh": 0}]))

    record = result.errors[0].to_dict()
    assert record["stage"] == "references"
    assert record["kind"] == "DanglingReference"
    assert record["entity_kind"] == "node"
    assert record["entity_index"] == 0
    assert record["field_name"] == "mesh"
    assert record["json_path"] == "/nodes/0/mesh"
    assert "message" in record


def test_concurrent_loads_are_independent():
    payloads = [EXAMPLE, payload(nodes=[{"mesh": 3}])] * 8
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(load, payloads))

    assert [r.stage for r in results] == [Stage.VALIDATED, Stage.PARSED] * 8
