"""Transformer for Postman data dump (backup) files."""

import copy
import uuid
from typing import Any

from arc_data.models.export import KIND_PROJECT, KIND_VARIABLE_DATA, ExportObject, Entity
from arc_data.transformers.postman_base import compute_requests_order, ensure_variables_syntax
from arc_data.transformers.postman_v1 import create_request
from arc_data.utils.request_utils import to_timestamp

VERSION = "postman-backup"


def _read_collection(collection: dict[str, Any], index: int) -> tuple[Entity, list[Entity]]:
    project: Entity = {
        "kind": KIND_PROJECT,
        "key": str(collection.get("id") or uuid.uuid4()),
        "name": collection.get("name") or "unnamed",
        "order": index,
        "created": to_timestamp(collection.get("createdAt")),
        "updated": to_timestamp(collection.get("updatedAt")),
    }
    if collection.get("description"):
        project["description"] = collection["description"]
    requests = [create_request(item, project) for item in compute_requests_order(collection)]
    return project, requests


def _variable(item: dict[str, Any], environment: str) -> Entity:
    return {
        "kind": KIND_VARIABLE_DATA,
        "key": str(uuid.uuid4()),
        "enabled": item.get("enabled", True),
        "environment": environment,
        "value": ensure_variables_syntax(item.get("value")),
        "name": item.get("key"),
    }


def compute_variables(data: dict[str, Any]) -> list[Entity] | None:
    """Read globals into the default environment and every environment's values.

    Returns:
        List of variables, or None when the file has none
    """
    result: list[Entity] = []
    globals_ = data.get("globals")
    if isinstance(globals_, list):
        result.extend(_variable(item, "default") for item in globals_ if isinstance(item, dict))
    environments = data.get("environments")
    if isinstance(environments, list):
        for env in environments:
            if not isinstance(env, dict) or not isinstance(env.get("values"), list):
                continue
            name = env.get("name") or "Unnamed"
            result.extend(_variable(item, name) for item in env["values"] if isinstance(item, dict))
    return result or None


async def transform_postman_backup(raw: dict[str, Any]) -> ExportObject:
    """Transform a Postman backup into the export object.

    Each collection becomes a project, ordered as in the file. Globals and
    environments become variables.

    Args:
        raw: Parsed backup file

    Returns:
        Export object ready to be stored
    """
    data = copy.deepcopy(raw)
    projects: list[Entity] = []
    requests: list[Entity] = []
    collections = data.get("collections")
    if isinstance(collections, list):
        for index, collection in enumerate(c for c in collections if isinstance(c, dict)):
            project, items = _read_collection(collection, index)
            projects.append(project)
            requests.extend(items)
    return ExportObject(
        version=VERSION,
        requests=requests,
        projects=projects,
        variables=compute_variables(data),
    )
