"""Request and entity helpers shared by the transformers and the export path."""

import math
import time
from datetime import datetime
from typing import Any
from urllib.parse import quote

from arc_data.models.export import Entity


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def encode_uri_component(value: str) -> str:
    """Percent-encode a value the same way browsers encode URI components."""
    return quote(value, safe="-_.!~*'()")


def to_timestamp(value: Any, default: int | None = None) -> int:
    """Coerce a legacy time value to epoch milliseconds.

    Accepts finite numbers, numeric strings and ISO-8601 strings. Anything
    else, infinity and NaN included, falls back to `default` (current time
    when not given).
    """
    fallback = now_ms() if default is None else default
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else fallback
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return fallback
        try:
            number = float(text)
        except ValueError:
            pass
        else:
            return int(number) if math.isfinite(number) else fallback
        try:
            return int(datetime.fromisoformat(text.replace("Z", "+00:00")).timestamp() * 1000)
        except (ValueError, OverflowError, OSError):
            return fallback
    return fallback


def compute_midnight(timestamp: Any) -> int:
    """Reduce a timestamp to local midnight of its day.

    Invalid values use the current day.
    """
    value = to_timestamp(timestamp)
    try:
        day = datetime.fromtimestamp(value / 1000)
    except (OverflowError, OSError, ValueError):
        day = datetime.fromtimestamp(now_ms() / 1000)
    day = day.replace(hour=0, minute=0, second=0, microsecond=0)
    return int(day.timestamp() * 1000)


def generate_request_id(item: Entity, project_id: str | None = None) -> str:
    """Generate a saved request's store ID from its name, URL and method.

    Args:
        item: A request object
        project_id: If set, the project key is appended to the ID

    Returns:
        Request ID value
    """
    name = str(item.get("name") or "unknown name").lower()
    url = str(item.get("url") or "https://").lower()
    method = str(item.get("method") or "GET").lower()
    result = f"{encode_uri_component(name)}/{encode_uri_component(url)}/{method}"
    if project_id:
        result += f"/{project_id}"
    return result


def generate_history_id(timestamp: Any, item: Entity) -> str:
    """Generate a history item's store ID.

    Requests to the same URL with the same method on the same day share
    the ID, so duplicates collapse into one history entry.
    """
    url = str(item.get("url") or "http://").lower()
    method = str(item.get("method") or "GET").lower()
    return f"{compute_midnight(timestamp)}/{encode_uri_component(url)}/{method}"


def update_item_timings(item: Entity) -> Entity:
    """Return a shallow copy with `updated` and `created` set.

    `updated` defaults to now, `created` defaults to `updated`.
    """
    data = dict(item)
    updated = data.get("updated")
    if not updated or not isinstance(updated, (int, float)):
        data["updated"] = now_ms()
    if not data.get("created"):
        data["created"] = data["updated"]
    return data


def add_project_reference(request: Entity, project_key: str | None) -> None:
    """Add a project key to the request's `projects` list."""
    if not project_key:
        return
    projects = request.get("projects")
    if not isinstance(projects, list):
        projects = []
        request["projects"] = projects
    if project_key not in projects:
        projects.append(project_key)


def add_request_reference(project: Entity, request_key: str | None) -> None:
    """Add a request key to the project's `requests` list."""
    if not request_key:
        return
    requests = project.get("requests")
    if not isinstance(requests, list):
        requests = []
        project["requests"] = requests
    if request_key not in requests:
        requests.append(request_key)


def link_request_projects(requests: list[Entity], projects: list[Entity]) -> None:
    """Make request and project references agree in both directions.

    Only references that resolve to an entity in the given lists are
    mirrored. Unresolved references are left as they are.
    """
    projects_by_key = {p["key"]: p for p in projects if p.get("key")}
    requests_by_key = {r["key"]: r for r in requests if r.get("key")}
    for request in requests:
        for project_key in list(request.get("projects") or []):
            project = projects_by_key.get(project_key)
            if project is not None:
                add_request_reference(project, request.get("key"))
    for project in projects:
        for request_key in list(project.get("requests") or []):
            request = requests_by_key.get(request_key)
            if request is not None:
                add_project_reference(request, project.get("key"))


def normalize_request(request: Entity | None) -> Entity | None:
    """Normalize a stored request to the current model.

    Moves `legacyProject` into `projects`, drops private underscore
    fields other than the store metadata, and fills missing timestamps.
    """
    if not request:
        return request
    legacy = request.pop("legacyProject", None)
    if legacy:
        projects = request.get("projects")
        if not isinstance(projects, list):
            projects = []
            request["projects"] = projects
        if legacy not in projects:
            projects.append(legacy)
    for key in list(request.keys()):
        if key.startswith("_") and key not in ("_id", "_rev", "_deleted"):
            del request[key]
    if not request.get("updated"):
        request["updated"] = now_ms()
    if not request.get("created"):
        request["created"] = now_ms()
    return request
