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

"""Runs parse, reference check and validation in order.

The document moves through ``Unparsed → Parsed → ReferenceChecked →
Validated``. A stage that reports errors is terminal: later stages are not
attempted and the result carries that stage's issues.
"""

import logging
from typing import Optional

from .exceptions import MalformedDocumentError
from .parsing.document_parser import Payload, parse
from .report import LoadResult, Stage
from .resolvers.reference_resolver import check_references
from .validation.cross_field_validator import validate
from .validation.sparse import BufferData

logger = logging.getLogger(__name__)


def load(data: Payload, buffers: Optional[BufferData] = None, strict_mode: bool = False) -> LoadResult:
    """Load and validate one payload without raising for document defects."""
    try:
        document = parse(data, strict_mode=strict_mode)
    except MalformedDocumentError as e:
        logger.debug(f"Parse failed with {len(e.issues)} issue(s)")
        return LoadResult(stage=Stage.UNPARSED, errors=list(e.issues))

    references = check_references(document)
    if not references.ok:
        return LoadResult(
            stage=Stage.PARSED,
            document=document,
            errors=list(references.errors),
            warnings=list(references.warnings),
        )

    validation = validate(document, references, buffers=buffers)
    warnings = list(references.warnings) + list(validation.warnings)
    if not validation.ok:
        return LoadResult(
            stage=Stage.REFERENCE_CHECKED,
            document=document,
            errors=list(validation.errors),
            warnings=warnings,
        )

    return LoadResult(stage=Stage.VALIDATED, document=document, warnings=warnings)
