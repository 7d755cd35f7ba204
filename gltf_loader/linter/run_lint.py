#!/usr/bin/env python3
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

"""CLI entry point for linting glTF 2.0 JSON files."""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from ..config import LoaderConfig
from ..exceptions import ConfigurationError
from . import lint_files, LintResult

GLTF_EXTENSIONS = ('.gltf',)


def find_gltf_files(paths: List[str]) -> List[Path]:
    """Find all .gltf files in given paths."""
    gltf_files = []

    for path_str in paths:
        path = Path(path_str)

        if not path.exists():
            print(f"Warning: Path does not exist: {path}", file=sys.stderr)
            continue

        if path.is_file():
            if path.suffix.lower() in GLTF_EXTENSIONS:
                gltf_files.append(path)
            else:
                print(f"Warning: File is not a .gltf document: {path}", file=sys.stderr)
        elif path.is_dir():
            for ext in GLTF_EXTENSIONS:
                gltf_files.extend(path.rglob(f'*{ext}'))
        else:
            print(f"Warning: Path is neither file nor directory: {path}", file=sys.stderr)

    return sorted(set(gltf_files))


def build_config(args: argparse.Namespace) -> LoaderConfig:
    """Environment first, then the config file, then command-line flags."""
    config = LoaderConfig.from_env()
    if args.config:
        config = LoaderConfig.from_yaml(args.config, base=config)

    overrides = {}
    if args.log_level:
        overrides['log_level'] = args.log_level
    if args.no_resolve_uris:
        overrides['resolve_uris'] = False
    if args.strict:
        overrides['strict_mode'] = True
    if args.ignore:
        overrides['ignore'] = list(config.ignore) + list(args.ignore)
    if overrides:
        config = config.merged(overrides, source='command line')
    return config


def _location(entry: dict) -> str:
    if 'line' not in entry:
        return ""
    if 'column' in entry:
        return f":{entry['line']}:{entry['column']}"
    return f":{entry['line']}"


def _label(entry: dict) -> str:
    return f" [{entry['kind']}]" if 'kind' in entry else ""


def print_results(results: List[LintResult], output_format: str) -> None:
    if output_format == 'json':
        output = {
            'files': len(results),
            'errors': sum(len(r.errors) for r in results),
            'warnings': sum(len(r.warnings) for r in results),
            'results': [r.to_dict() for r in results],
        }
        print(json.dumps(output, indent=2))
    elif output_format == 'github-actions':
        for result in results:
            for error in result.errors:
                print(f"::error file={result.file_path},line={error.get('line', 1)}::{error['message']}")
            for warning in result.warnings:
                print(f"::warning file={result.file_path},line={warning.get('line', 1)}::{warning['message']}")
    else:  # human-readable
        for result in results:
            if result.errors or result.warnings:
                print(f"\n{result.file_path}:")
                for error in result.errors:
                    print(f"  ERROR{_location(error)}{_label(error)}: {error['message']}")
                for warning in result.warnings:
                    print(f"  WARNING{_location(warning)}{_label(warning)}: {warning['message']}")


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the linter CLI."""
    parser = argparse.ArgumentParser(
        description='Lint glTF 2.0 JSON documents',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        'paths',
        nargs='*',
        default=None,
        help='File paths or directories to lint (default: current directory)',
    )
    parser.add_argument(
        '--format',
        choices=['human', 'json', 'github-actions'],
        default='human',
        help='Output format (default: human)',
    )
    parser.add_argument(
        '--config',
        default=None,
        help='YAML file with linter settings',
    )
    parser.add_argument(
        '--no-resolve-uris',
        action='store_true',
        help='Do not load external buffers; skips checks that need buffer bytes',
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Reject assets whose minor version is newer than supported',
    )
    parser.add_argument(
        '--ignore',
        action='append',
        metavar='KIND',
        help='Issue kind to suppress (may be repeated)',
    )
    parser.add_argument(
        '--log-level',
        default=None,
        help='Logging level (DEBUG, INFO, WARNING, ERROR)',
    )

    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)
    config.set_logging()

    if not args.paths:
        args.paths = ['.']

    gltf_files = find_gltf_files(args.paths)

    if not gltf_files:
        print("No .gltf files found.", file=sys.stderr)
        sys.exit(1)

    results = lint_files(gltf_files, config)
    print_results(results, args.format)

    total_errors = sum(len(r.errors) for r in results)
    if total_errors > 0:
        sys.exit(1)
    if args.format == 'human':
        print("Lint succeeded with no errors.")
    sys.exit(0)


if __name__ == '__main__':
    main()
