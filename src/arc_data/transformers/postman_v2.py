"""Transformer for Postman v2 and v2.1 collections."""

import asyncio
import copy
import logging
import uuid
from typing import Any

from arc_data.models.export import KIND_PROJECT, KIND_REQUEST, ExportObject, Entity
from arc_data.transformers.postman_base import (
    ensure_variables_recursively,
    ensure_variables_syntax,
    param_value,
)
from arc_data.utils.request_utils import (
    add_project_reference,
    add_request_reference,
    generate_request_id,
    now_ms,
)

logger = logging.getLogger(__name__)

VERSION = "postman-collection-v2"
DEFAULT_CHUNK_SIZE = 200


def compute_headers(headers: Any) -> str:
    """Join enabled v2 headers into the ARC headers string."""
    if isinstance(headers, str):
        return headers
    if not isinstance(headers, list):
        return ""
    lines = []
    for header in headers:
        if isinstance(header, dict) and not header.get("disabled"):
            lines.append(f"{header.get('key', '')}: {header.get('value', '')}")
    return "\n".join(lines)


def _form_data_body(items: Any, result: Entity) -> str:
    if not isinstance(items, list):
        return ""
    multipart = []
    for part in ensure_variables_recursively(items):
        if not isinstance(part, dict):
            continue
        is_file = part.get("type") == "file"
        multipart.append(
            {
                "enabled": not part.get("disabled"),
                "name": part.get("key"),
                "isFile": is_file,
                "value": "" if is_file else part.get("value"),
            }
        )
    result["multipart"] = multipart
    return ""


def _url_encoded_body(items: Any) -> str:
    if not isinstance(items, list):
        return ""
    params = []
    for part in ensure_variables_recursively(items):
        if isinstance(part, dict) and not part.get("disabled"):
            params.append(f"{param_value(part.get('key'))}={param_value(part.get('value'))}")
    return "&".join(params)


def compute_payload(body: Any, result: Entity) -> str:
    """Compute the payload of a v2 `request.body`.

    Form data bodies set the `multipart` model on `result` and return an
    empty payload.
    """
    if not isinstance(body, dict):
        return ""
    mode = body.get("mode")
    definition = body.get(mode) if isinstance(mode, str) else None
    if not definition:
        return ""
    if mode == "raw":
        return ensure_variables_syntax(definition) if isinstance(definition, str) else ""
    if mode == "formdata":
        return _form_data_body(definition, result)
    if mode == "urlencoded":
        return _url_encoded_body(definition)
    return ""


def _request_url(request: dict[str, Any]) -> str:
    url = request.get("url")
    if isinstance(url, str) and url:
        return url
    if isinstance(url, dict) and url.get("raw"):
        return str(url["raw"])
    return "http://"


def compute_arc_request(item: dict[str, Any], project_key: str) -> Entity:
    """Transform a v2 item into an ARC saved request."""
    request = item.get("request")
    if isinstance(request, str):
        request = {"url": request}
    elif not isinstance(request, dict):
        request = {}
    time = now_ms()
    result: Entity = {
        "kind": KIND_REQUEST,
        "name": item.get("name") or "unnamed",
        "url": ensure_variables_syntax(_request_url(request)),
        "method": ensure_variables_syntax(request.get("method") or "GET"),
        "created": time,
        "updated": time,
        "type": "saved",
        "headers": compute_headers(ensure_variables_recursively(request.get("header"))),
    }
    result["key"] = generate_request_id(result, project_key)
    result["payload"] = compute_payload(request.get("body"), result)
    add_project_reference(result, project_key)
    return result


async def extract_requests(
    items: list[Any], project_key: str, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> list[Entity]:
    """Flatten nested item groups into a list of requests in document order.

    Control is returned to the event loop after every `chunk_size` requests.
    """
    result: list[Entity] = []
    stack = [iter(items)]
    done = object()
    while stack:
        item = next(stack[-1], done)
        if item is done:
            stack.pop()
            continue
        if not isinstance(item, dict):
            continue
        children = item.get("item")
        if isinstance(children, list):
            stack.append(iter(children))
            continue
        result.append(compute_arc_request(item, project_key))
        if len(result) % chunk_size == 0:
            await asyncio.sleep(0)
    return result


async def transform_postman_v2(raw: dict[str, Any], chunk_size: int = DEFAULT_CHUNK_SIZE) -> ExportObject:
    """Transform a Postman v2 or v2.1 collection into the export object.

    The collection becomes one project holding every request of the
    collection, folders included.

    Args:
        raw: Parsed collection file
        chunk_size: Number of requests processed between event loop yields

    Returns:
        Export object ready to be stored
    """
    data = copy.deepcopy(raw)
    info = data.get("info") if isinstance(data.get("info"), dict) else {}
    project_key = str(info.get("_postman_id") or uuid.uuid4())
    items = data.get("item")
    requests = await extract_requests(
        items if isinstance(items, list) else [], project_key, max(chunk_size, 1)
    )
    time = now_ms()
    project: Entity = {
        "kind": KIND_PROJECT,
        "key": project_key,
        "name": info.get("name") or "unnamed",
        "created": time,
        "updated": time,
        "order": 0,
    }
    description = info.get("description")
    if description:
        project["description"] = description
    for request in requests:
        add_request_reference(project, request["key"])
    logger.debug("Postman collection %s: %d requests", project_key, len(requests))
    return ExportObject(version=VERSION, requests=requests, projects=[project])
