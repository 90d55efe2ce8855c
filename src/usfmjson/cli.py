"""
Command line front end

Usage: usfmjson [options] <usfm_file_or_glob>...
       usfmjson --to-usfm [options] <json_file_or_glob>...
"""

import argparse
import concurrent.futures
import glob
import json
import logging
import os
import sys
from functools import partial
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .model import Document
from .parser import ParseOptions, UsfmParser
from .serializer import SerializeOptions, UsfmSerializer

LOG = logging.getLogger(__name__)

ConversionResult = Tuple[str, Any, Optional[str]]


def usfm_file_to_json(file_path: str, options: ParseOptions) -> Dict[str, Any]:
    """Parse a USFM file and return its Document as JSON-ready data."""
    with open(file_path, "r", encoding="utf-8-sig") as f:
        content = f.read()
    return UsfmParser(options=options).parse(content).to_json()


def json_file_to_usfm(file_path: str, options: SerializeOptions) -> str:
    with open(file_path, "r", encoding="utf-8-sig") as f:
        data = json.load(f)
    return UsfmSerializer(options).serialize(Document.from_json(data))


def convert_file(
    file_path: str, to_usfm: bool, parse_options: ParseOptions, serialize_options: SerializeOptions
) -> ConversionResult:
    LOG.info("... Processing %s ...", file_path)
    try:
        if to_usfm:
            return file_path, json_file_to_usfm(file_path, serialize_options), None
        return file_path, usfm_file_to_json(file_path, parse_options), None
    except (OSError, ValueError) as e:
        return file_path, None, f"{type(e).__name__}: {e}"


def expand_paths(patterns: Sequence[str]) -> List[str]:
    file_paths = []
    for pattern in patterns:
        expanded = sorted(glob.glob(pattern))
        if expanded:
            file_paths.extend(path for path in expanded if os.path.isfile(path))
        else:
            file_paths.append(pattern)
    return file_paths


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Convert USFM files to JSON verse objects, or JSON back to USFM.",
    )
    parser.add_argument("files", nargs="+", help="file(s) or glob pattern", metavar="filename")
    parser.add_argument("--to-usfm", action="store_true", help="read JSON documents and write USFM")
    parser.add_argument("--chunk", action="store_true", help="treat input as a fragment without chapters")
    parser.add_argument("--content-source", help="content source stamped onto every word")
    parser.add_argument(
        "--convert-to-int",
        action="append",
        default=[],
        metavar="ATTRIBUTE",
        help="attribute whose values are stored as integers (repeatable)",
    )
    parser.add_argument(
        "--forced-new-lines", action="store_true", help="start verses and adjacent milestones on new lines"
    )
    parser.add_argument("--output", "-o", help="output file (default: stdout)")
    parser.add_argument("--pretty", "-p", action="store_true", help="pretty print JSON output")
    parser.add_argument("--verbose", "-v", action="store_true", help="verbose output")
    parser.add_argument("--debug", "-d", action="store_true", help="debug mode, files are converted one at a time")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    level = logging.WARNING
    if args.verbose:
        level = logging.INFO
    if args.debug:
        level = logging.DEBUG
    logging.basicConfig(format="%(levelname)s: %(message)s", level=level)

    parse_options = ParseOptions(
        chunk=args.chunk, content_source=args.content_source, convert_to_int=tuple(args.convert_to_int)
    )
    serialize_options = SerializeOptions(chunk=args.chunk, forced_new_lines=args.forced_new_lines)
    convert = partial(
        convert_file, to_usfm=args.to_usfm, parse_options=parse_options, serialize_options=serialize_options
    )

    file_paths = expand_paths(args.files)
    if args.debug or len(file_paths) < 2:
        results = [convert(file_path) for file_path in file_paths]
    else:
        with concurrent.futures.ProcessPoolExecutor() as executor:
            results = list(executor.map(convert, file_paths))

    failed = 0
    converted: Dict[str, Any] = {}
    for file_path, result, error in results:
        if error is not None:
            LOG.error("Error converting %s: %s", file_path, error)
            failed += 1
        else:
            converted[file_path] = result

    if args.to_usfm:
        output = "".join(converted.values())
    else:
        data = next(iter(converted.values())) if len(file_paths) == 1 and converted else converted
        output = json.dumps(data, indent=4 if args.pretty else None, ensure_ascii=False)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
    elif args.to_usfm:
        sys.stdout.write(output)
    else:
        print(output)

    return 1 if failed else 0
