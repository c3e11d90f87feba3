"""Transformer for the first ARC export format."""

import copy
import uuid
from typing import Any

from arc_data.models.export import KIND_PROJECT, KIND_REQUEST, ExportObject, Entity
from arc_data.utils.request_utils import add_request_reference, now_ms, to_timestamp


def _is_single_request(data: dict[str, Any]) -> bool:
    return "requests" not in data and "projects" not in data


def _transform_projects(projects: Any) -> tuple[list[Entity], dict[Any, Entity]]:
    """Assign fresh keys to legacy projects.

    Returns:
        Tuple of (projects, side table of legacy project ID to project)
    """
    result: list[Entity] = []
    by_origin: dict[Any, Entity] = {}
    if not isinstance(projects, list):
        return result, by_origin
    for item in projects:
        if not isinstance(item, dict):
            continue
        project = {
            "kind": KIND_PROJECT,
            "key": str(uuid.uuid4()),
            "created": to_timestamp(item.get("created")),
            "name": item.get("name") or "unnamed",
            "order": 0,
            "updated": now_ms(),
        }
        result.append(project)
        origin = item.get("id")
        if isinstance(origin, (str, int)) and origin not in by_origin:
            by_origin[origin] = project
    return result, by_origin


def _transform_request(item: dict[str, Any], projects: dict[Any, Entity] | None = None) -> Entity:
    key = str(uuid.uuid4())
    result: Entity = {
        "kind": KIND_REQUEST,
        "key": key,
        "created": to_timestamp(item.get("time")),
        "updated": now_ms(),
        "headers": item.get("headers") or "",
        "method": item.get("method") or "GET",
        "name": item.get("name") or "unnamed",
        "payload": item.get("payload") or "",
        "type": "saved",
        "url": item.get("url") or "http://",
    }
    project = None
    origin = item.get("project")
    if origin and projects and isinstance(origin, (str, int)):
        project = projects.get(origin)
    if project is not None:
        result["projects"] = [project["key"]]
        add_request_reference(project, key)
    if item.get("driveId"):
        result["driveId"] = item["driveId"]
    return result


async def transform_arc_legacy(raw: dict[str, Any]) -> ExportObject:
    """Transform the first ARC export format into the export object.

    The input is either a single request or an object with `projects` and
    `requests` lists. Every entity gets a fresh key. Requests referencing a
    project that is not in the file stay unassociated.

    Args:
        raw: Parsed import data

    Returns:
        Export object ready to be stored
    """
    data = copy.deepcopy(raw)
    if _is_single_request(data):
        projects: list[Entity] = []
        requests = [_transform_request(data)]
    else:
        projects, by_origin = _transform_projects(data.get("projects"))
        items = data.get("requests")
        requests = [
            _transform_request(item, by_origin)
            for item in (items if isinstance(items, list) else [])
            if isinstance(item, dict)
        ]
    return ExportObject(requests=requests, projects=projects)
