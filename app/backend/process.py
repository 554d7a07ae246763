"""
Backend process module
======================

File-level wrapper around the extractor: ``.eml`` files are parsed and
their preferred body extracted; any other file is read as a stored
message body. Results can be written as JSON.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.extractors.email.email_parser import EmailParser
from core.extractors.email_extractor import EmailContentExtractor, get_extractor
from core.logger import get_logger

logger = get_logger(__name__)

DEFAULT_OUTPUT_JSON_NAME = "result.json"
EML_SUFFIXES = {".eml"}


def ensure_output_dir(output_dir: str) -> Path:
    """Create the output directory if needed and return its resolved path."""
    output_path = Path(output_dir).resolve()
    output_path.mkdir(parents=True, exist_ok=True)
    return output_path


def read_raw_body(path: Path) -> Dict[str, Any]:
    """Return ``{"raw": str, "headers": dict}`` for one input file."""
    if path.suffix.lower() in EML_SUFFIXES:
        parsed = EmailParser.parse(path)
        return {"raw": EmailParser.body_for_extraction(parsed), "headers": parsed["headers"]}
    return {"raw": path.read_text(encoding="utf-8", errors="replace"), "headers": {}}


def extract_text(raw: str, extractor: Optional[EmailContentExtractor] = None) -> Dict[str, Any]:
    """Extract one body and return a JSON-ready dict."""
    extractor = extractor or get_extractor()
    result = extractor.extract_result(raw)
    return {
        "status": result.status.value,
        "content": result.to_display(),
        "truncation": result.truncation.model_dump(),
        "decoded": list(result.decoded),
    }


def process_files(
    file_paths: List[str],
    extractor: Optional[EmailContentExtractor] = None,
) -> Dict[str, Any]:
    """
    Extract every file in *file_paths*.

    Unreadable files are reported in ``errors`` and do not stop the batch.
    """
    extractor = extractor or get_extractor()
    results: List[Dict[str, Any]] = []
    errors: List[Dict[str, str]] = []

    for file_path in file_paths:
        path = Path(file_path)
        try:
            body = read_raw_body(path)
        except OSError as e:
            logger.warning("Failed reading %s: %s", path, e)
            errors.append({"filename": path.name, "error": str(e)})
            continue
        item = extract_text(body["raw"], extractor)
        item["filename"] = path.name
        item["subject"] = body["headers"].get("subject")
        results.append(item)

    summary = {
        "total_files": len(file_paths),
        "extracted": sum(1 for r in results if r["status"] == "extracted"),
        "empty": sum(1 for r in results if r["status"] == "empty"),
        "errors": len(errors),
    }
    logger.info("process_files: %s", summary)
    return {"results": results, "errors": errors, "summary": summary}


def write_json_output(
    result: Dict[str, Any],
    output_dir: str,
    output_filename: Optional[str] = None,
    timestamp: bool = False,
) -> str:
    """Write *result* as UTF-8 JSON and return the file path."""
    output_path = ensure_output_dir(output_dir)
    name = output_filename or DEFAULT_OUTPUT_JSON_NAME
    if timestamp and not output_filename:
        name = f"result_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
    json_path = output_path / name
    json_path.write_text(json.dumps(result, ensure_ascii=False, indent=2), encoding="utf-8")
    return str(json_path)
