"""Transformer for Postman v1 collections."""

import copy
import uuid
from typing import Any

from arc_data.models.export import KIND_PROJECT, KIND_REQUEST, ExportObject, Entity
from arc_data.transformers.postman_base import (
    compute_body_old,
    compute_requests_order,
    ensure_variables_syntax,
)
from arc_data.utils.request_utils import (
    add_project_reference,
    add_request_reference,
    generate_request_id,
    now_ms,
    to_timestamp,
)

VERSION = "postman-collection-v1"


def create_request(item: dict[str, Any], project: Entity | None) -> Entity:
    """Transform a v1 (or backup) request into an ARC saved request.

    Args:
        item: Postman request
        project: Project the request belongs to, updated in place

    Returns:
        ARC request object
    """
    result: Entity = {
        "kind": KIND_REQUEST,
        "created": to_timestamp(item.get("time")),
        "updated": now_ms(),
        "headers": ensure_variables_syntax(item.get("headers") or ""),
        "method": ensure_variables_syntax(item.get("method") or "GET"),
        "name": item.get("name") or "unnamed",
        "type": "saved",
        "url": ensure_variables_syntax(item.get("url") or "http://"),
    }
    result["payload"] = compute_body_old(item, result)
    project_key = project.get("key") if project else None
    result["key"] = generate_request_id(result, project_key)
    if project is not None:
        add_project_reference(result, project_key)
        add_request_reference(project, result["key"])
    if item.get("description"):
        result["description"] = item["description"]
    return result


async def transform_postman_v1(raw: dict[str, Any]) -> ExportObject:
    """Transform a Postman v1 collection into the export object.

    The collection becomes one project and the folder structure is
    flattened into an ordered list of requests.

    Args:
        raw: Parsed collection file

    Returns:
        Export object ready to be stored
    """
    data = copy.deepcopy(raw)
    time = to_timestamp(data.get("timestamp"))
    project: Entity = {
        "kind": KIND_PROJECT,
        "key": str(data.get("id") or uuid.uuid4()),
        "name": data.get("name") or "unnamed",
        "created": time,
        "updated": time,
        "order": 0,
    }
    if data.get("description"):
        project["description"] = data["description"]
    requests = [create_request(item, project) for item in compute_requests_order(data)]
    return ExportObject(version=VERSION, requests=requests, projects=[project])
