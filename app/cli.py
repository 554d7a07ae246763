import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import httpx

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from app.backend.process import extract_text, process_files, write_json_output
from core.logger import set_level
from core.pipeline import run_audit, run_repair
from core.store import SupabaseMessageStore


def collect_source_paths(inputs: List[str]) -> List[str]:
    collected: List[str] = []
    for raw in inputs:
        path = Path(raw).expanduser()
        if path.is_dir():
            for child in sorted(path.rglob("*")):
                if child.is_file():
                    collected.append(str(child))
        elif path.is_file():
            collected.append(str(path))
        else:
            print(f"[warn] input not found: {raw}")
    return collected


def non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract, repair and audit stored CRM email content."
    )
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_extract = sub.add_parser("extract", help="Extract message text from files or stdin.")
    p_extract.add_argument(
        "--inputs",
        nargs="+",
        default=None,
        help="Input .eml/text files or directories. Reads stdin when omitted.",
    )
    p_extract.add_argument(
        "--output-dir",
        default=None,
        help="Write result JSON here instead of printing.",
    )
    p_extract.add_argument(
        "--output-json-name",
        default=None,
        help="Output JSON filename (default: result.json).",
    )
    p_extract.add_argument(
        "--output-json-timestamp",
        action="store_true",
        help="Append timestamp to JSON output filename.",
    )

    p_repair = sub.add_parser("repair", help="Re-extract stored email content and write it back.")
    p_repair.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing.",
    )
    p_repair.add_argument("--limit", type=non_negative_int, default=None, help="Only the newest N emails.")

    p_audit = sub.add_parser("audit", help="Report display issues in recent messages.")
    p_audit.add_argument("--limit", type=non_negative_int, default=50, help="Number of recent messages.")

    return parser.parse_args(argv)


def _cmd_extract(args: argparse.Namespace) -> int:
    if not args.inputs:
        item = extract_text(sys.stdin.read())
        print(item["content"])
        return 0

    file_paths = collect_source_paths(args.inputs)
    if not file_paths:
        print("[error] no valid input files found.")
        return 1

    result = process_files(file_paths)
    if args.output_dir:
        json_path = write_json_output(
            result,
            args.output_dir,
            output_filename=args.output_json_name,
            timestamp=args.output_json_timestamp,
        )
        print("JSON:", json_path)
    else:
        print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


def _cmd_repair(args: argparse.Namespace) -> int:
    with SupabaseMessageStore() as store:
        report = run_repair(store, dry_run=args.dry_run, limit=args.limit)
    for change in report.changes:
        status = "error" if change.error else ("applied" if change.applied else "pending")
        print(f"[{status}] {change.message_id}: {change.after_preview!r}")
    print(
        f"scanned={report.scanned} changed={report.changed} unchanged={report.unchanged} "
        f"degraded={report.degraded} failed={report.failed}"
    )
    return 1 if report.failed else 0


def _cmd_audit(args: argparse.Namespace) -> int:
    with SupabaseMessageStore() as store:
        report = run_audit(store, limit=args.limit)
    print(json.dumps(report.model_dump(), ensure_ascii=False, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.verbose:
        set_level(logging.DEBUG)
    try:
        if args.command == "extract":
            return _cmd_extract(args)
        if args.command == "repair":
            return _cmd_repair(args)
        return _cmd_audit(args)
    except (ValueError, httpx.HTTPError) as e:
        print(f"[error] {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
