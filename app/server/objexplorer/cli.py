"""
Command line entry point.

    objexplorer flatten orders.json --include 'name' --max-depth 4
    objexplorer flatten events.jsonl --jsonl --format csv
    cat data.json | objexplorer flatten - --maps --exclude 'price'

JSON objects load as records, so their fields are named ``root.a.b``; pass
``--maps`` to keep them as dictionaries (``root['a']['b']``). A top-level
JSON array is treated as a batch: each element is flattened on its own.
"""

import argparse
import json
import logging
import sys
from types import SimpleNamespace
from typing import Any, List, Optional

from .constants import DEFAULT_MAX_DEPTH, ROOT_NAME
from .errors import InvalidArgumentError
from .export import to_dataframe
from .flattener import FlattenConfig, flatten_all

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 2


def parse_json_roots(content: str, as_maps: bool = False) -> List[Any]:
    """Parse a JSON document; a top-level array yields one root per element."""
    hook = None if as_maps else _to_record
    data = json.loads(content, object_hook=hook)
    return data if isinstance(data, list) else [data]


def parse_jsonl_roots(content: str, as_maps: bool = False) -> List[Any]:
    """
    Parse JSON Lines content, one root per line.

    Empty lines are ignored and malformed lines are skipped with a warning.

    Raises:
        ValueError: If the content contains no valid JSON records
    """
    hook = None if as_maps else _to_record
    roots = []
    for line_num, line in enumerate(content.strip().split('\n'), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            roots.append(json.loads(line, object_hook=hook))
        except json.JSONDecodeError as e:
            logger.warning(f"Malformed JSON on line {line_num}: {e}")
    if not roots:
        raise ValueError("JSONL input contains no valid JSON records")
    return roots


def _to_record(obj: dict) -> SimpleNamespace:
    # Keys land in the instance dict as-is, "__dict__" and "__class__" included
    record = SimpleNamespace()
    vars(record).update(obj)
    return record


def _jsonable(value: Any) -> Any:
    if isinstance(value, SimpleNamespace):
        return {key: _jsonable(item) for key, item in vars(value).items()}
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="objexplorer", description="Inspect nested objects.")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase log verbosity (-v info, -vv debug).")
    subparsers = parser.add_subparsers(dest="command", required=True)

    flat = subparsers.add_parser("flatten", help="Flatten JSON documents into path/value pairs.")
    flat.add_argument("input", nargs="?", default="-", help="Input file path or '-' for stdin.")
    flat.add_argument("--jsonl", action="store_true", help="Read JSON Lines, one root per line.")
    flat.add_argument("--maps", action="store_true",
                      help="Keep JSON objects as maps instead of records.")
    flat.add_argument("--exclude", nargs="*", default=[""], metavar="PATTERN",
                      help="Field name patterns to drop at every level.")
    flat.add_argument("--include", nargs="*", default=None, metavar="PATTERN",
                      help="Only emit fields whose name matches one of these.")
    flat.add_argument("--value", nargs="*", default=None, metavar="PATTERN",
                      help="Only emit values whose text matches one of these.")
    flat.add_argument("--no-exclude-default", dest="exclude_default", action="store_false",
                      help="Keep fields intrinsic to built-in types (datetime.year, ...).")
    flat.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH)
    flat.add_argument("--root-name", default=ROOT_NAME)
    flat.add_argument("--ignore-case", action="store_true", help="Match patterns case-insensitively.")
    flat.add_argument("--format", choices=["json", "jsonl", "csv"], default="json",
                      help="Output format.")
    return parser


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def run_flatten(args: argparse.Namespace, out) -> int:
    config = FlattenConfig(
        exclude=args.exclude,
        exclude_default=args.exclude_default,
        include=args.include,
        value=args.value,
        max_depth=args.max_depth,
        root_name=args.root_name,
        ignore_case=args.ignore_case,
    )
    content = _read_input(args.input)
    if args.jsonl:
        roots = parse_jsonl_roots(content, args.maps)
    else:
        roots = parse_json_roots(content, args.maps)

    results = flatten_all(roots, config)
    logger.info(f"Flattened {len(results)} root(s)")

    if args.format == "csv":
        to_dataframe(results).to_csv(out, index=False)
    elif args.format == "jsonl":
        for result in results:
            out.write(json.dumps(_jsonable(result)) + "\n")
    else:
        out.write(json.dumps(_jsonable(results), indent=2) + "\n")
    return EXIT_OK


def main(argv: Optional[List[str]] = None, out=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=[logging.WARNING, logging.INFO, logging.DEBUG][min(args.verbose, 2)],
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    out = out or sys.stdout
    try:
        return run_flatten(args, out)
    except InvalidArgumentError as e:
        logger.error(f"Invalid argument: {e}")
        return EXIT_INVALID
    except (OSError, ValueError) as e:
        logger.error(f"Cannot read input: {e}")
        return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
