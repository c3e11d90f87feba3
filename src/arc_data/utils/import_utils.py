"""Import data parsing and format detection.

Every predicate here is total over parsed JSON values: lists, strings,
numbers and None are simply not a match. Only `classify_import` raises,
and only when nothing matches.
"""

import json
from typing import Any

from arc_data.exceptions import ImportFormatError, ImportParseError
from arc_data.models.export import ExportObject, ImportFormat

ARC_KIND_PREFIX = "ARC#"

# Collection names that identify ARC data in exports without a `kind`.
ARC_ENTRIES = (
    "projects",
    "requests",
    "history",
    "url-history",
    "websocket-url-history",
    "variables",
    "headers-sets",
    "auth-data",
    "cookies",
)

# Kinds written by the document store based versions of the application.
POUCH_KINDS = frozenset(
    {
        "ARC#SavedHistoryDataExport",
        "ARC#AllDataExport",
        "ARC#SavedDataExport",
        "ARC#SavedExport",
        "ARC#HistoryDataExport",
        "ARC#HistoryExport",
        "ARC#Project",
        "ARC#SessionCookies",
        "ARC#HostRules",
        "ARC#ProjectExport",
        "ARC#Import",
    }
)

DEXIE_KIND = "ARC#requestsDataExport"

POSTMAN_V2_SCHEMA = "v2.0.0"
POSTMAN_V21_SCHEMA = "v2.1.0"


def prepare_import_object(data: Any) -> Any:
    """Parse file content with the JSON parser.

    Already parsed values are returned unchanged.

    Raises:
        ImportParseError: If a string or bytes value is not valid JSON
    """
    if isinstance(data, (bytes, bytearray)):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ImportParseError(f"Unable to read the file. Not a JSON: {e}") from e
    if isinstance(data, str):
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            raise ImportParseError(f"Unable to read the file. Not a JSON: {e.msg}") from e
    return data


def _present(value: Any) -> bool:
    """Truthiness where lists and objects always count, even when empty."""
    if isinstance(value, (list, dict)):
        return True
    return bool(value)


def is_old_import(data: Any) -> bool:
    """Check if data is a single request from the first export system."""
    if not isinstance(data, dict):
        return False
    if any(_present(data.get(name)) for name in ("projects", "requests", "history")):
        return False
    return "headers" in data and "url" in data and "method" in data


def is_postman(data: Any) -> bool:
    """Check if data is a Postman file."""
    if not isinstance(data, dict):
        return False
    if data.get("version") and _present(data.get("collections")):
        return True
    info = data.get("info")
    if isinstance(info, dict) and info.get("schema"):
        return True
    if _present(data.get("folders")) and _present(data.get("requests")):
        return True
    if data.get("_postman_variable_scope"):
        return True
    return False


def is_arc_file(data: Any) -> bool:
    """Check if data is an ARC export of any version."""
    if not isinstance(data, dict):
        return False
    kind = data.get("kind")
    if isinstance(kind, str) and kind.startswith(ARC_KIND_PREFIX):
        return True
    # The oldest exports have no `kind`.
    if any(name in data for name in ARC_ENTRIES):
        return True
    return is_old_import(data)


def postman_format(data: dict[str, Any]) -> ImportFormat:
    """Select the Postman sub-format of data that passed `is_postman`.

    Raises:
        ImportFormatError: If the Postman schema version is not supported
    """
    if data.get("version") and _present(data.get("collections")):
        return ImportFormat.POSTMAN_BACKUP
    info = data.get("info")
    if isinstance(info, dict) and info.get("schema"):
        schema = str(info["schema"])
        if POSTMAN_V21_SCHEMA in schema:
            return ImportFormat.POSTMAN_V21
        if POSTMAN_V2_SCHEMA in schema:
            return ImportFormat.POSTMAN_V2
        raise ImportFormatError(f"Unsupported Postman collection schema: {schema}")
    if _present(data.get("folders")) and _present(data.get("requests")):
        return ImportFormat.POSTMAN_V1
    if data.get("_postman_variable_scope") == "environment":
        return ImportFormat.POSTMAN_ENVIRONMENT
    raise ImportFormatError("Unsupported Postman file")


def arc_format(data: dict[str, Any]) -> ImportFormat:
    """Select the ARC export generation by the `kind` property."""
    kind = data.get("kind")
    if not isinstance(kind, str):
        return ImportFormat.ARC_LEGACY
    if kind in POUCH_KINDS:
        return ImportFormat.ARC_POUCH
    if kind == DEXIE_KIND:
        return ImportFormat.ARC_DEXIE
    return ImportFormat.ARC_LEGACY


def classify_import(data: Any) -> ImportFormat:
    """Recognize the format of parsed import data.

    Raises:
        ImportFormatError: If the data matches no known format
    """
    if is_postman(data):
        return postman_format(data)
    if is_arc_file(data):
        return arc_format(data)
    raise ImportFormatError("File not recognized")


def is_single_request(data: ExportObject) -> bool:
    """Check if normalized data holds a single request and nothing else.

    A single request export is opened in the workspace instead of being
    imported.
    """
    if not data.requests or len(data.requests) != 1:
        return False
    for name in ("projects", "history", "websocketurlhistory", "urlhistory", "cookies",
                 "authdata", "variables", "hostrules", "clientcertificates"):
        if getattr(data, name):
            return False
    return True
