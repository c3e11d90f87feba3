"""Transformer for exports of the previous document store based ARC versions."""

import copy
import uuid
from typing import Any

from arc_data.models.export import (
    EXPORT_COLLECTIONS,
    KIND_CLIENT_CERTIFICATE,
    KIND_IMPORT,
    LEGACY_COLLECTION_NAMES,
    ExportObject,
    Entity,
)
from arc_data.utils.request_utils import (
    add_project_reference,
    add_request_reference,
    generate_history_id,
    generate_request_id,
    link_request_projects,
    update_item_timings,
)


def _collection(data: dict[str, Any], name: str) -> list[Entity] | None:
    """Read a collection by its current name, falling back to the hyphenated one."""
    value = data.get(name)
    if not value:
        for legacy, current in LEGACY_COLLECTION_NAMES.items():
            if current == name and data.get(legacy):
                value = data[legacy]
                break
    if not isinstance(value, list) or not value:
        return None
    return [item for item in value if isinstance(item, dict)]


def _transform_projects(projects: list[Entity]) -> tuple[list[Entity], dict[Any, Entity]]:
    """Assign missing keys and timings to projects.

    Returns:
        Tuple of (projects, side table of key and `_referenceId` to project)
    """
    result: list[Entity] = []
    lookup: dict[Any, Entity] = {}
    for item in projects:
        project = update_item_timings(item)
        reference = project.pop("_referenceId", None)
        if not project.get("key"):
            project["key"] = str(uuid.uuid4())
        result.append(project)
        lookup.setdefault(project["key"], project)
        if isinstance(reference, (str, int)):
            lookup.setdefault(reference, project)
    return result, lookup


def _transform_requests(requests: list[Entity], lookup: dict[Any, Entity]) -> list[Entity]:
    result: list[Entity] = []
    for item in requests:
        request = dict(item)
        reference = request.pop("_referenceLegacyProject", None)
        legacy = request.pop("legacyProject", None)
        reference = reference or legacy
        if not request.get("key"):
            request["key"] = generate_request_id(
                request, reference if isinstance(reference, str) else None
            )
        if isinstance(reference, (str, int)):
            project = lookup.get(reference)
            if project is not None:
                add_project_reference(request, project["key"])
                add_request_reference(project, request["key"])
        request["name"] = request.get("name") or "unnamed"
        request["url"] = request.get("url") or "http://"
        request["method"] = request.get("method") or "GET"
        request["headers"] = request.get("headers") or ""
        request["payload"] = request.get("payload") or ""
        result.append(update_item_timings(request))
    return result


def _transform_history(history: list[Entity]) -> list[Entity]:
    result: list[Entity] = []
    for item in history:
        entry = update_item_timings(item)
        entry["url"] = item.get("url") or "http://"
        entry["method"] = item.get("method") or "GET"
        entry["headers"] = item.get("headers") or ""
        entry["payload"] = item.get("payload") or ""
        if not entry.get("key"):
            entry["key"] = generate_history_id(entry["created"], entry)
        result.append(entry)
    return result


def _with_keys(items: list[Entity]) -> list[Entity]:
    result: list[Entity] = []
    for item in items:
        entry = dict(item)
        if not entry.get("key"):
            entry["key"] = str(uuid.uuid4())
        result.append(entry)
    return result


def _transform_client_certificates(items: list[Entity]) -> list[Entity]:
    return [
        update_item_timings(item) for item in items if item.get("kind") == KIND_CLIENT_CERTIFICATE
    ]


async def transform_arc_pouch(raw: dict[str, Any]) -> ExportObject:
    """Transform an ARC document store export into the export object.

    The input already has the export object shape but may use hyphenated
    collection names, miss keys or carry legacy project references. When
    both the hyphenated and the current name are present the current name
    wins.

    Args:
        raw: Parsed import data

    Returns:
        Export object. Its kind is `ARC#Import` unless the file asks to be
        loaded into the workspace.
    """
    data = copy.deepcopy(raw)
    collections = {name: _collection(data, name) for name in EXPORT_COLLECTIONS}
    result: dict[str, Any] = {
        key: value
        for key, value in data.items()
        if key not in EXPORT_COLLECTIONS and key not in LEGACY_COLLECTION_NAMES
    }

    projects: list[Entity] | None = None
    lookup: dict[Any, Entity] = {}
    if collections["projects"]:
        projects, lookup = _transform_projects(collections["projects"])
    if collections["requests"]:
        requests = _transform_requests(collections["requests"], lookup)
        link_request_projects(requests, projects or [])
        result["requests"] = requests
    if projects:
        result["projects"] = projects
    if collections["history"]:
        result["history"] = _transform_history(collections["history"])
    for name in ("websocketurlhistory", "urlhistory", "cookies", "authdata", "variables", "hostrules"):
        if collections[name]:
            result[name] = _with_keys(collections[name])
    if collections["clientcertificates"]:
        result["clientcertificates"] = _transform_client_certificates(collections["clientcertificates"])

    # Only the camelCase names belong to the file format.
    for field in ("created_at", "load_to_workspace", "electron_cookies"):
        result.pop(field, None)
    for field in ("createdAt", "version", "kind"):
        if field in result and not isinstance(result[field], str):
            result.pop(field)
    for field in ("loadToWorkspace", "electronCookies"):
        if field in result and not isinstance(result[field], bool):
            result.pop(field)
    if not result.get("loadToWorkspace"):
        result["kind"] = KIND_IMPORT
    return ExportObject.model_validate(result)
