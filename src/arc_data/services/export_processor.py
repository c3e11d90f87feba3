"""Maps raw store documents to the export object."""

from collections.abc import Callable
from typing import Any

from arc_data.models.export import (
    KIND_AUTH_DATA,
    KIND_CLIENT_CERTIFICATE,
    KIND_COOKIE,
    KIND_HISTORY,
    KIND_HOST_RULE,
    KIND_PROJECT,
    KIND_REQUEST,
    KIND_URL_HISTORY,
    KIND_VARIABLE,
    KIND_WEBSOCKET_URL,
    Entity,
    ExportObject,
    ExportOptions,
    ExportProcessedData,
)


def _to_entity(doc: dict[str, Any], kind: str) -> Entity:
    """Copy a store document into an export entity of the given kind."""
    entity = dict(doc)
    entity["key"] = entity.pop("_id", None)
    entity.pop("_rev", None)
    entity.pop("_deleted", None)
    entity["kind"] = kind
    return entity


class ExportProcessor:
    """Creates the export object from data read by the export factory."""

    def __init__(self, electron_cookies: bool = False) -> None:
        """Initialize export processor.

        Args:
            electron_cookies: Cookies come from the browser session store and
                keep their native shape
        """
        self.electron_cookies = electron_cookies
        self._preparers: dict[str, Callable[[list[Any]], list[Entity]]] = {
            "authdata": self.prepare_auth_data,
            "clientcertificates": self.prepare_client_cert_data,
            "cookies": self.prepare_cookie_data,
            "history": self.prepare_history_data_list,
            "hostrules": self.prepare_host_rules_data,
            "projects": self.prepare_projects_list,
            "requests": self.prepare_requests_list,
            "urlhistory": self.prepare_url_history_data,
            "variables": self.prepare_variables_data,
            "websocketurlhistory": self.prepare_ws_url_history_data,
        }

    def create_export_object(
        self, export_data: list[ExportProcessedData], options: ExportOptions
    ) -> ExportObject:
        """Create the export object.

        Entries for the same collection are concatenated in order.

        Args:
            export_data: Raw data per collection
            options: Export configuration

        Returns:
            Export object ready to be serialized
        """
        result = ExportObject(version=options.app_version, kind=options.kind)
        if self.electron_cookies:
            result.electron_cookies = True
        if options.skip_import:
            result.load_to_workspace = True
        for entry in export_data:
            if entry.data is None:
                continue
            items = self.prepare_item(entry.key, entry.data)
            if items is None:
                continue
            current = getattr(result, entry.key)
            setattr(result, entry.key, (current or []) + items)
        return result

    def prepare_item(self, key: str, values: list[Any]) -> list[Entity] | None:
        """Map documents of one collection, None for unknown collections."""
        preparer = self._preparers.get(key)
        if preparer is None:
            return None
        return preparer(values)

    def prepare_requests_list(self, requests: list[dict[str, Any]]) -> list[Entity]:
        """Map saved requests, moving `legacyProject` into `projects`."""
        result = []
        for item in requests:
            request = _to_entity(item, KIND_REQUEST)
            legacy = request.pop("legacyProject", None)
            if legacy:
                projects = list(request.get("projects") or [])
                if legacy not in projects:
                    projects.append(legacy)
                request["projects"] = projects
            result.append(request)
        return result

    def prepare_projects_list(self, projects: list[dict[str, Any]]) -> list[Entity]:
        return [_to_entity(item, KIND_PROJECT) for item in projects]

    def prepare_history_data_list(self, history: list[dict[str, Any]]) -> list[Entity]:
        return [_to_entity(item, KIND_HISTORY) for item in history]

    def prepare_ws_url_history_data(self, data: list[dict[str, Any]]) -> list[Entity]:
        return [_to_entity(item, KIND_WEBSOCKET_URL) for item in data]

    def prepare_url_history_data(self, data: list[dict[str, Any]]) -> list[Entity]:
        return [_to_entity(item, KIND_URL_HISTORY) for item in data]

    def prepare_variables_data(self, data: list[dict[str, Any]]) -> list[Entity]:
        """Map variables, renaming `variable` to `name`.

        Documents without an environment are not variables and are dropped.
        """
        result = []
        for item in data:
            if not item.get("environment"):
                continue
            value = _to_entity(item, KIND_VARIABLE)
            if value.get("variable"):
                value["name"] = value.pop("variable")
            result.append(value)
        return result

    def prepare_auth_data(self, auth_data: list[dict[str, Any]]) -> list[Entity]:
        return [_to_entity(item, KIND_AUTH_DATA) for item in auth_data]

    def prepare_cookie_data(self, cookies: list[dict[str, Any]]) -> list[Entity]:
        if not self.electron_cookies:
            return [_to_entity(item, KIND_COOKIE) for item in cookies]
        return [{**item, "kind": KIND_COOKIE} for item in cookies]

    def prepare_host_rules_data(self, host_rules: list[dict[str, Any]]) -> list[Entity]:
        return [_to_entity(item, KIND_HOST_RULE) for item in host_rules]

    def prepare_client_cert_data(self, items: list[dict[str, Any]]) -> list[Entity]:
        """Join certificate index and data records into one entity."""
        result = []
        for pair in items:
            value = _to_entity(pair["item"], KIND_CLIENT_CERTIFICATE)
            value.pop("dataKey", None)
            data = pair.get("data") or {}
            value["cert"] = data.get("cert")
            if data.get("key"):
                value["pKey"] = data["key"]
            result.append(value)
        return result
