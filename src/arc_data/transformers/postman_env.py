"""Transformer for Postman environment exports."""

import copy
from typing import Any

from arc_data.models.export import KIND_VARIABLE_DATA, ExportObject, Entity
from arc_data.transformers.postman_base import ensure_variables_syntax
from arc_data.utils.request_utils import encode_uri_component

VERSION = "postman-environment"


def variable_id(environment: str, name: Any) -> str:
    """Build the store ID of an imported environment variable.

    Importing the same environment again overwrites its variables.
    """
    env = encode_uri_component(str(environment))
    var = encode_uri_component("" if name is None else str(name))
    return f"postman-var-{env}-{var}"


async def transform_postman_environment(raw: dict[str, Any]) -> ExportObject:
    """Transform a Postman environment into variables of that environment.

    Args:
        raw: Parsed environment file

    Returns:
        Export object with the `variables` collection
    """
    data = copy.deepcopy(raw)
    environment = data.get("name") or "default"
    values = data.get("values")
    variables: list[Entity] = []
    if isinstance(values, list):
        for item in values:
            if not isinstance(item, dict):
                continue
            variables.append(
                {
                    "kind": KIND_VARIABLE_DATA,
                    "key": variable_id(environment, item.get("key")),
                    "environment": environment,
                    "enabled": bool(item.get("enabled")),
                    "name": item.get("key"),
                    "value": ensure_variables_syntax(item.get("value")),
                }
            )
    return ExportObject(version=VERSION, variables=variables)
