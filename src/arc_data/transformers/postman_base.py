"""Helpers shared by the Postman transformers."""

import re
from typing import Any

from arc_data.models.export import Entity

VARIABLE_PATTERN = re.compile(r"\{\{(.*?)\}\}", re.IGNORECASE | re.MULTILINE)

# Postman dynamic variables with an ARC function equivalent.
DYNAMIC_VARIABLES = {
    "$randomInt": "random()",
    "$guid": "uuid()",
    "$timestamp": "now()",
}


def _replace_variable(match: re.Match) -> str:
    value = match.group(1)
    return "${" + DYNAMIC_VARIABLES.get(value, value) + "}"


def ensure_variables_syntax(value: Any) -> Any:
    """Replace Postman's `{{name}}` variables with ARC's `${name}` syntax.

    Non-string values are returned unchanged.
    """
    if not isinstance(value, str) or "{{" not in value:
        return value
    return VARIABLE_PATTERN.sub(_replace_variable, value)


def ensure_variables_recursively(value: Any) -> Any:
    """Apply `ensure_variables_syntax` to every string in a JSON value."""
    if isinstance(value, list):
        return [ensure_variables_recursively(item) for item in value]
    if isinstance(value, dict):
        return {key: ensure_variables_recursively(item) for key, item in value.items()}
    return ensure_variables_syntax(value)


def param_value(value: Any) -> str:
    """Read a payload parameter name or value as a trimmed string."""
    if not value:
        return ""
    return str(value).strip()


def compute_form_data_body(item: dict[str, Any], result: Entity) -> str:
    """Set the `multipart` model of a v1 form data body on `result`.

    Returns:
        Always an empty string, the payload lives in `multipart`
    """
    data = item.get("data")
    if not isinstance(data, list) or not data:
        return ""
    multipart = []
    for part in ensure_variables_recursively(data):
        if not isinstance(part, dict):
            continue
        is_file = part.get("type") == "file"
        multipart.append(
            {
                "enabled": part.get("enabled", True),
                "name": part.get("key"),
                "isFile": is_file,
                "value": "" if is_file else part.get("value"),
            }
        )
    result["multipart"] = multipart
    return ""


def compute_url_encoded_body(item: dict[str, Any]) -> str:
    """Build a v1 URL encoded body string."""
    data = item.get("data")
    if not isinstance(data, list) or not data:
        return ""
    params = []
    for part in ensure_variables_recursively(data):
        if isinstance(part, dict):
            params.append(f"{param_value(part.get('key'))}={param_value(part.get('value'))}")
    return "&".join(params)


def compute_body_old(item: dict[str, Any], result: Entity) -> str:
    """Compute the payload of a v1 (and backup) request definition.

    Args:
        item: Postman v1 request
        result: ARC request receiving the `multipart` model, if any

    Returns:
        Body value
    """
    data = item.get("data")
    if isinstance(data, str):
        return ensure_variables_syntax(data)
    if isinstance(data, list) and not data:
        return ""
    mode = item.get("dataMode")
    if mode == "params":
        return compute_form_data_body(item, result)
    if mode == "urlencoded":
        return compute_url_encoded_body(item)
    return ""


def compute_requests_order(collection: dict[str, Any]) -> list[dict[str, Any]]:
    """Flatten a v1 collection's requests in collection then folder order.

    Folders are visited in `folders_order` when present. Order entries that
    do not resolve to a request are skipped.
    """
    requests = collection.get("requests")
    if not isinstance(requests, list) or not requests:
        return []
    ordered: list[Any] = []
    order = collection.get("order")
    if isinstance(order, list):
        ordered.extend(order)
    for folder in _ordered_folders(collection.get("folders"), collection.get("folders_order")):
        folder_order = folder.get("order")
        if isinstance(folder_order, list):
            ordered.extend(folder_order)
    by_id: dict[Any, dict[str, Any]] = {}
    for request in requests:
        if isinstance(request, dict) and isinstance(request.get("id"), (str, int)):
            by_id.setdefault(request["id"], request)
    return [by_id[rid] for rid in ordered if isinstance(rid, (str, int)) and rid in by_id]


def _ordered_folders(folders: Any, order_ids: Any) -> list[dict[str, Any]]:
    if not isinstance(folders, list) or not folders:
        return []
    folders = [folder for folder in folders if isinstance(folder, dict)]
    if not isinstance(order_ids, list) or not order_ids:
        return folders
    by_id = {folder.get("id"): folder for folder in folders if isinstance(folder.get("id"), (str, int))}
    return [by_id[fid] for fid in order_ids if isinstance(fid, (str, int)) and fid in by_id]
