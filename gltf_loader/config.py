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

"""Configuration for the command-line tools.

The loader core takes no configuration; everything here is consumed by the
linter, which owns file access and output.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .exceptions import ConfigurationError
from .report import IssueKind
from .utils.logging_utils import configure_split_stream_logging, level_from_name

ENV_PREFIX = "GLTF_LOADER_"
DEFAULT_MAX_INPUT_BYTES = 64 * 1024 * 1024


@dataclass
class LoaderConfig:
    """Configuration class for the glTF linter."""
    log_level: str = "WARNING"
    print_level: str = "WARNING"
    max_input_bytes: int = DEFAULT_MAX_INPUT_BYTES
    resolve_uris: bool = True
    strict_mode: bool = False
    ignore: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> 'LoaderConfig':
        """Create configuration from environment variables."""
        try:
            max_input_bytes = int(os.getenv(f'{ENV_PREFIX}MAX_INPUT_BYTES', str(DEFAULT_MAX_INPUT_BYTES)))
        except ValueError as e:
            raise ConfigurationError(f"{ENV_PREFIX}MAX_INPUT_BYTES must be an integer: {e}") from e
        ignore = [k.strip() for k in os.getenv(f'{ENV_PREFIX}IGNORE', '').split(',') if k.strip()]
        config = cls(
            log_level=os.getenv(f'{ENV_PREFIX}LOG_LEVEL', 'WARNING'),
            print_level=os.getenv(f'{ENV_PREFIX}PRINT_LEVEL', 'WARNING'),
            max_input_bytes=max_input_bytes,
            resolve_uris=os.getenv(f'{ENV_PREFIX}RESOLVE_URIS', 'true').lower() == 'true',
            strict_mode=os.getenv(f'{ENV_PREFIX}STRICT', 'false').lower() == 'true',
            ignore=ignore,
        )
        config.check()
        return config

    @classmethod
    def from_yaml(cls, path: Union[str, Path], base: Optional['LoaderConfig'] = None) -> 'LoaderConfig':
        """Load settings from a YAML file, layered over ``base``."""
        path = Path(path)
        try:
            content = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file {path}: {e}") from e

        if content is None:
            content = {}
        if not isinstance(content, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")

        return (base or cls()).merged(content, source=str(path))

    def merged(self, values: Dict[str, Any], source: str = "config") -> 'LoaderConfig':
        known = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown keys in {source}: {', '.join(unknown)}")
        config = dataclasses.replace(self, **values)
        config.check()
        return config

    def check(self) -> None:
        for name in ("log_level", "print_level"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ConfigurationError(f"{name} must be a level name string, got {value!r}")
        for name in ("resolve_uris", "strict_mode"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ConfigurationError(f"{name} must be true or false, got {value!r}")
        # bool is a subclass of int
        if (isinstance(self.max_input_bytes, bool) or not isinstance(self.max_input_bytes, int)
                or self.max_input_bytes <= 0):
            raise ConfigurationError(f"max_input_bytes must be a positive integer, got {self.max_input_bytes!r}")
        if not isinstance(self.ignore, list):
            raise ConfigurationError(f"ignore must be a list of issue kinds, got {self.ignore!r}")
        valid = set(IssueKind.get_all_kinds())
        invalid = [k for k in self.ignore if k not in valid]
        if invalid:
            raise ConfigurationError(
                f"Unknown issue kinds in ignore: {', '.join(map(str, invalid))}. "
                f"Valid kinds: {', '.join(sorted(valid))}"
            )

    def set_logging(self) -> logging.Logger:
        """Setup logging based on configuration."""
        level = level_from_name(self.log_level, logging.WARNING)
        stderr_level = level_from_name(self.print_level, logging.WARNING)

        formatter = logging.Formatter('%(name)s - %(levelname)s - %(message)s')
        return configure_split_stream_logging(
            level=level,
            stderr_level=stderr_level,
            formatter=formatter,
            logger_name='gltf_loader',
        )
