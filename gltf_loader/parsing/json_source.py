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

"""Decoding of raw glTF JSON payloads, with optional source locations."""

import json
import logging
from typing import Any, Dict, Tuple, Union

import yaml

from ..exceptions import MalformedDocumentError
from ..report import PARSE_STAGE, Issue, IssueKind

logger = logging.getLogger(__name__)

SourceMap = Dict[str, Dict[str, int]]

_BOM = "\ufeff"

# glTF itself nests about ten levels; the rest is headroom for extras
MAX_NESTING_DEPTH = 256


def decode_text(data: Union[bytes, bytearray, memoryview, str]) -> str:
    """Return the payload as text, rejecting anything that is not UTF-8."""
    if isinstance(data, str):
        text = data
    else:
        try:
            text = bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedDocumentError([
                Issue(
                    stage=PARSE_STAGE,
                    kind=IssueKind.MALFORMED_DOCUMENT,
                    message=f"Payload is not valid UTF-8: {e}",
                )
            ]) from e
    if text.startswith(_BOM):
        text = text[len(_BOM):]
    return text


def _nesting_depth(value: Any) -> int:
    depth = 0
    stack = [(value, 1)]
    while stack:
        item, level = stack.pop()
        if isinstance(item, dict):
            children = item.values()
        elif isinstance(item, list):
            children = item
        else:
            continue
        depth = max(depth, level)
        stack.extend((child, level + 1) for child in children)
    return depth


def _too_deep() -> MalformedDocumentError:
    return MalformedDocumentError([
        Issue(
            stage=PARSE_STAGE,
            kind=IssueKind.MALFORMED_DOCUMENT,
            message=f"JSON nesting too deep (more than {MAX_NESTING_DEPTH} levels)",
        )
    ])


def load_json(data: Union[bytes, bytearray, memoryview, str]) -> Any:
    """Decode a JSON payload.

    A truncated or syntactically invalid payload aborts immediately with a
    single-issue :class:`MalformedDocumentError`. So does a payload nested
    deeper than ``MAX_NESTING_DEPTH``; every later stage walks the decoded
    value recursively.
    """
    text = decode_text(data)
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug(f"JSON decoding failed at line {e.lineno} column {e.colno}: {e.msg}")
        raise MalformedDocumentError([
            Issue(
                stage=PARSE_STAGE,
                kind=IssueKind.MALFORMED_DOCUMENT,
                message=f"Invalid JSON at line {e.lineno} column {e.colno}: {e.msg}",
            )
        ]) from e
    except RecursionError as e:
        logger.debug(f"JSON decoding failed: {e}")
        raise _too_deep() from e

    if _nesting_depth(raw) > MAX_NESTING_DEPTH:
        raise _too_deep()
    return raw


def _json_pointer_escape(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def build_source_map(text: str) -> SourceMap:
    """Build a mapping from JSON pointers to 1-based line/column.

    JSON documents are valid YAML flow collections, so PyYAML's node tree
    (yaml.compose) gives positions without a second JSON tokenizer. An empty
    map is returned when the text cannot be composed.
    """
    source_map: SourceMap = {}

    # YAML rejects tab indentation; JSON strings cannot hold a raw tab, so
    # swapping every tab for a space keeps all columns in place
    try:
        root = yaml.compose(text.replace("\t", " "), Loader=yaml.SafeLoader)
    except yaml.YAMLError as e:
        logger.debug(f"Source map unavailable: {e}")
        return source_map

    if root is None:
        return source_map

    def _record(path: str, node) -> None:
        mark = getattr(node, "start_mark", None)
        if mark is None:
            return
        # PyYAML uses 0-based line/column
        source_map[path] = {"line": int(mark.line) + 1, "column": int(mark.column) + 1}

    stack = [(root, "")]
    while stack:
        node, path = stack.pop()
        _record(path, node)
        if isinstance(node, yaml.nodes.MappingNode):
            for key_node, value_node in node.value:
                key = getattr(key_node, "value", None)
                if key is None:
                    continue
                stack.append((value_node, f"{path}/{_json_pointer_escape(str(key))}"))
        elif isinstance(node, yaml.nodes.SequenceNode):
            for idx, item_node in enumerate(node.value):
                stack.append((item_node, f"{path}/{idx}"))

    return source_map


def load_json_with_source(data: Union[bytes, bytearray, memoryview, str]) -> Tuple[Any, SourceMap]:
    """Decode a JSON payload and return (data, source_map)."""
    text = decode_text(data)
    return load_json(text), build_source_map(text)
