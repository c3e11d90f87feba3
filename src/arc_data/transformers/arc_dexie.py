"""Transformer for exports of the per-object-store (Dexie) ARC data system.

Requests of all types live in one list and are told apart by `type`
("history", "saved" or "drive"). Projects list the IDs of the requests they
own, which is the inverse of the current model. Headers and payloads are
read from the HAR log kept with every request.
"""

import asyncio
import copy
import logging
import uuid
from typing import Any

from arc_data.models.export import KIND_HISTORY, KIND_PROJECT, KIND_REQUEST, ExportObject, Entity
from arc_data.utils.request_utils import (
    add_project_reference,
    add_request_reference,
    generate_history_id,
    now_ms,
    to_timestamp,
)

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 200


def _har_headers(headers: Any) -> str:
    if not isinstance(headers, list):
        return ""
    lines = []
    for header in headers:
        if isinstance(header, dict):
            lines.append(f"{header.get('name', '')}: {header.get('value', '')}")
    return "\n".join(lines)


def _har_entries(item: dict[str, Any]) -> list[Any]:
    har = item.get("_har") or item.get("har")
    if not isinstance(har, dict):
        return []
    entries = har.get("entries")
    return entries if isinstance(entries, list) else []


def _apply_har_entry(result: Entity, entry: Any) -> bool:
    """Copy headers, payload and start time of a HAR entry into a request."""
    if not isinstance(entry, dict):
        return False
    request = entry.get("request")
    if not isinstance(request, dict):
        request = {}
    post_data = request.get("postData")
    result["headers"] = _har_headers(request.get("headers"))
    result["payload"] = post_data.get("text", "") if isinstance(post_data, dict) else ""
    result["created"] = to_timestamp(entry.get("startedDateTime"))
    return True


def _parse_history_item(item: dict[str, Any]) -> Entity:
    updated = to_timestamp(item.get("updateTime"))
    result: Entity = {
        "kind": KIND_HISTORY,
        "method": item.get("method") or "GET",
        "url": item.get("url") or "http://",
        "headers": "",
        "payload": "",
    }
    entries = _har_entries(item)
    if not (entries and _apply_har_entry(result, entries[-1])):
        result["created"] = updated
    result["updated"] = now_ms()
    result["key"] = generate_history_id(result["created"], result)
    return result


def _parse_saved_item(item: dict[str, Any]) -> Entity:
    result: Entity = {
        "kind": KIND_REQUEST,
        "key": str(uuid.uuid4()),
        "name": item.get("name") or item.get("_name") or "unnamed",
        "method": item.get("method") or "GET",
        "url": item.get("url") or "http://",
        "type": "saved",
        "headers": "",
        "payload": "",
    }
    entries = _har_entries(item)
    index = item.get("referenceEntry") or 0
    entry = None
    if isinstance(index, int) and 0 <= index < len(entries):
        entry = entries[index]
    if not _apply_har_entry(result, entry):
        result["created"] = now_ms()
    result["updated"] = now_ms()
    if item.get("type") == "drive" and item.get("driveId"):
        result["driveId"] = item["driveId"]
    return result


async def _parse_requests(
    requests: Any, chunk_size: int
) -> tuple[list[tuple[Any, Entity]], list[Entity]]:
    """Split raw requests into saved and history items.

    Control is returned to the event loop after every `chunk_size` items.

    Returns:
        Tuple of ((origin ID, saved request) pairs, history items)
    """
    saved: list[tuple[Any, Entity]] = []
    history: list[Entity] = []
    if not isinstance(requests, list):
        return saved, history
    seen: set[str] = set()
    for index, item in enumerate(requests, start=1):
        if isinstance(item, dict):
            kind = item.get("type")
            if kind == "history":
                entry = _parse_history_item(item)
                if entry["key"] not in seen:
                    seen.add(entry["key"])
                    history.append(entry)
            elif kind in ("saved", "drive"):
                saved.append((item.get("id"), _parse_saved_item(item)))
        if index % chunk_size == 0:
            await asyncio.sleep(0)
    return saved, history


def _process_projects(projects: Any) -> list[tuple[list[Any], Entity]]:
    """Create projects with the list of request IDs each owns.

    Projects that own no requests are dropped.
    """
    result: list[tuple[list[Any], Entity]] = []
    if not isinstance(projects, list):
        return result
    for item in projects:
        if not isinstance(item, dict):
            continue
        request_ids = item.get("requestIds")
        if not isinstance(request_ids, list) or not request_ids:
            continue
        project = {
            "kind": KIND_PROJECT,
            "key": str(uuid.uuid4()),
            "name": item.get("name") or "unnamed",
            "order": item.get("order") or 0,
            "updated": to_timestamp(item.get("updateTime")),
            "created": to_timestamp(item.get("created")),
        }
        result.append((request_ids, project))
    return result


def _associate_projects(
    saved: list[tuple[Any, Entity]], projects: list[tuple[list[Any], Entity]]
) -> None:
    by_origin: dict[Any, Entity] = {}
    for origin, request in saved:
        if isinstance(origin, (str, int)) and origin not in by_origin:
            by_origin[origin] = request
    for request_ids, project in projects:
        for request_id in request_ids:
            request = by_origin.get(request_id) if isinstance(request_id, (str, int)) else None
            if request is None:
                continue
            # The key carries the first owning project only.
            if not request.get("projects"):
                request["key"] = f"{request['key']}/{project['key']}"
            add_project_reference(request, project["key"])
            add_request_reference(project, request["key"])


async def transform_arc_dexie(raw: dict[str, Any], chunk_size: int = DEFAULT_CHUNK_SIZE) -> ExportObject:
    """Transform a Dexie based ARC export into the export object.

    History items get the deterministic history key so duplicates of the
    same request on the same day collapse, keeping the first one.

    Args:
        raw: Parsed import data
        chunk_size: Number of requests processed between event loop yields

    Returns:
        Export object ready to be stored
    """
    data = copy.deepcopy(raw)
    saved, history = await _parse_requests(data.get("requests"), max(chunk_size, 1))
    projects = _process_projects(data.get("projects"))
    _associate_projects(saved, projects)
    logger.debug(
        "Dexie import: %d saved, %d history, %d projects", len(saved), len(history), len(projects)
    )
    return ExportObject(
        requests=[request for _, request in saved],
        projects=[project for _, project in projects],
        history=history,
    )
