"""
Command-line tools for inspecting and producing E57 binary sections.

Environment Variables:
    E57_PAGE_SIZE: Physical page size in bytes (default: 1024)
    E57_READ_AHEAD_PAGES: Pages fetched per decoder refill (default: 4)
    E57_STRICT_FIELDS: Reject unknown row fields when encoding (default: false)
    E57_LOG_LEVEL: Logging level (default: INFO)
    E57_LOG_FILE: Optional rotating log file

CLI Usage:
    e57codec header scan.e57
    e57codec verify scan.e57 --offset 1024 --pages 10
    e57codec dump scan.e57 --schema points.json --offset 2048 --length 9000 --count 500
    e57codec encode out.bin --schema points.json --offset 0 rows.jsonl
    e57codec to-pcd scan.e57 --schema points.json --offset 2048 --length 9000 --count 500 out.pcd
"""
import argparse
import json
import sys
from pathlib import Path
from typing import Any, Iterator

from e57codec.codec import PointCloudIterator, Prototype, SectionDescriptor, encode_section
from e57codec.core.config import settings
from e57codec.core.logging_config import configure_logging, get_logger
from e57codec.errors import ChecksumMismatch, E57Error
from e57codec.io import CHECKSUM_SIZE, FileSource, PagedReader, read_header
from e57codec.io.pcd import cartesian_array, save_to_pcd

logger = get_logger(__name__)


def _load_prototype(path: str) -> Prototype:
    with open(path, "r", encoding="utf-8") as f:
        return Prototype.from_schema(json.load(f))


def _section_from_args(args: argparse.Namespace) -> SectionDescriptor:
    return SectionDescriptor(offset=args.offset, logical_length=args.length, record_count=args.count)


def _iter_json_lines(path: str) -> Iterator[dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                yield json.loads(line)


def cmd_header(args: argparse.Namespace) -> int:
    with FileSource(args.file, mode="rb") as source:
        header = read_header(source)
    print(json.dumps(header.to_dict(), indent=2))
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    with FileSource(args.file, mode="rb") as source:
        page_size = args.page_size or settings.PAGE_SIZE
        logical_length = None
        if args.pages is not None:
            logical_length = args.pages * (page_size - CHECKSUM_SIZE)
        reader = PagedReader(source, offset=args.offset, logical_length=logical_length, page_size=page_size)
        try:
            count = reader.verify()
        except ChecksumMismatch as e:
            print(f"FAILED: page {e.page_index}: {e}")
            return 1
    print(f"OK: {count} pages verified")
    return 0


def cmd_dump(args: argparse.Namespace) -> int:
    prototype = _load_prototype(args.schema)
    with FileSource(args.file, mode="rb") as source:
        points = PointCloudIterator(source, _section_from_args(args), prototype, page_size=args.page_size)
        for i, row in enumerate(points):
            if args.limit is not None and i >= args.limit:
                break
            print(json.dumps(row, default=float))
    return 0


def cmd_encode(args: argparse.Namespace) -> int:
    prototype = _load_prototype(args.schema)
    mode = "r+b" if Path(args.file).exists() else "w+b"
    with FileSource(args.file, mode=mode) as source:
        section = encode_section(
            source,
            prototype,
            _iter_json_lines(args.rows),
            offset=args.offset,
            page_size=args.page_size,
            strict=args.strict or None,
        )
    print(json.dumps(section.to_dict()))
    return 0


def cmd_to_pcd(args: argparse.Namespace) -> int:
    prototype = _load_prototype(args.schema)
    with FileSource(args.file, mode="rb") as source:
        points = PointCloudIterator(source, _section_from_args(args), prototype, page_size=args.page_size)
        xyz = cartesian_array(points)
    save_to_pcd(xyz, args.output, binary=args.binary)
    return 0


def _add_section_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--schema", required=True, help="JSON list of field descriptors")
    p.add_argument("--offset", type=int, required=True, help="Physical offset of the section")
    p.add_argument("--length", type=int, required=True, help="Logical length of the section in bytes")
    p.add_argument("--count", type=int, required=True, help="Number of rows in the section")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="e57codec", description="Inspect and encode E57 binary sections")
    parser.add_argument("--page-size", type=int, default=None, help="Physical page size in bytes")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    parser.add_argument("--log-file", default=settings.LOG_FILE)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("header", help="Print the file header")
    p.add_argument("file")
    p.set_defaults(func=cmd_header)

    p = sub.add_parser("verify", help="Checksum-verify pages")
    p.add_argument("file")
    p.add_argument("--offset", type=int, default=0)
    p.add_argument("--pages", type=int, default=None, help="Number of pages (default: to end of file)")
    p.set_defaults(func=cmd_verify)

    p = sub.add_parser("dump", help="Decode a section and print rows as JSON lines")
    p.add_argument("file")
    _add_section_args(p)
    p.add_argument("--limit", type=int, default=None)
    p.set_defaults(func=cmd_dump)

    p = sub.add_parser("encode", help="Encode JSON-lines rows into a section")
    p.add_argument("file")
    p.add_argument("rows", help="JSON-lines file, one row object per line")
    p.add_argument("--schema", required=True)
    p.add_argument("--offset", type=int, default=0)
    p.add_argument("--strict", action="store_true", help="Reject fields not in the schema")
    p.set_defaults(func=cmd_encode)

    p = sub.add_parser("to-pcd", help="Export cartesian points of a section to PCD")
    p.add_argument("file")
    p.add_argument("output")
    _add_section_args(p)
    p.add_argument("--binary", action="store_true")
    p.set_defaults(func=cmd_to_pcd)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_file)
    try:
        return args.func(args)
    except E57Error as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
