"""Export/Import models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Entity = dict[str, Any]

# Export object kinds
KIND_IMPORT = "ARC#Import"
KIND_ALL_DATA_EXPORT = "ARC#AllDataExport"

# Entity kinds
KIND_REQUEST = "ARC#RequestData"
KIND_HISTORY = "ARC#HistoryData"
KIND_PROJECT = "ARC#ProjectData"
KIND_WEBSOCKET_URL = "ARC#WebsocketHistoryData"
KIND_URL_HISTORY = "ARC#UrlHistoryData"
KIND_VARIABLE = "ARC#Variable"
KIND_VARIABLE_DATA = "ARC#VariableData"
KIND_AUTH_DATA = "ARC#AuthData"
KIND_COOKIE = "ARC#Cookie"
KIND_HOST_RULE = "ARC#HostRule"
KIND_CLIENT_CERTIFICATE = "ARC#ClientCertificate"

# Export object collections in import order.
EXPORT_COLLECTIONS = (
    "requests",
    "projects",
    "history",
    "websocketurlhistory",
    "urlhistory",
    "cookies",
    "authdata",
    "variables",
    "hostrules",
    "clientcertificates",
)

# Hyphenated names used by older exports for the same collections.
LEGACY_COLLECTION_NAMES = {
    "websocket-url-history": "websocketurlhistory",
    "url-history": "urlhistory",
    "auth-data": "authdata",
    "host-rules": "hostrules",
    "client-certificates": "clientcertificates",
}


def iso_now() -> str:
    """Current time as ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class ExportObject(BaseModel):
    """Canonical interchange object.

    Collections that are absent stay None and are omitted by `to_dict()`.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    created_at: str = Field(default_factory=iso_now, alias="createdAt")
    version: str = "unknown"
    kind: str = KIND_IMPORT
    load_to_workspace: bool | None = Field(default=None, alias="loadToWorkspace")
    electron_cookies: bool | None = Field(default=None, alias="electronCookies")

    requests: list[Entity] | None = None
    projects: list[Entity] | None = None
    history: list[Entity] | None = None
    websocketurlhistory: list[Entity] | None = None
    urlhistory: list[Entity] | None = None
    cookies: list[Entity] | None = None
    authdata: list[Entity] | None = None
    variables: list[Entity] | None = None
    hostrules: list[Entity] | None = None
    clientcertificates: list[Entity] | None = None

    def collection(self, name: str) -> list[Entity] | None:
        """Get a collection by its export name."""
        if name not in EXPORT_COLLECTIONS:
            raise KeyError(name)
        return getattr(self, name)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the file format."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ImportFormat(str, Enum):
    """Import file formats recognized by the classifier."""

    ARC_LEGACY = "arc-legacy"
    ARC_DEXIE = "arc-dexie"
    ARC_POUCH = "arc-pouch"
    POSTMAN_V1 = "postman-v1"
    POSTMAN_V2 = "postman-v2"
    POSTMAN_V21 = "postman-v2.1"
    POSTMAN_BACKUP = "postman-backup"
    POSTMAN_ENVIRONMENT = "postman-environment"


class ExportOptions(BaseModel):
    """Export configuration."""

    app_version: str = "Unknown version"
    kind: str = KIND_ALL_DATA_EXPORT
    skip_import: bool = False


class ExportProcessedData(BaseModel):
    """Raw store documents read for one export collection."""

    key: str
    data: list[Entity] | None = None


class IndexableRequest(BaseModel):
    """Request to be added to the URL search index."""

    id: str
    url: str
    type: Literal["saved", "history"]


class ImportReport(BaseModel):
    """Result of storing normalized import data."""

    errors: list[str] | None = None
    indexes: list[IndexableRequest] | None = None


class ImportAction(str, Enum):
    """What the caller should do with normalized file data."""

    OPEN_REQUEST = "open_request"
    LOAD_WORKSPACE = "load_workspace"
    INSPECT = "inspect"


class ImportPreview(BaseModel):
    """Normalized file data with the action it calls for."""

    action: ImportAction
    data: ExportObject
    request: Entity | None = None


class ExportFileResult(BaseModel):
    """Result of writing an export file."""

    file_path: str
    file_size_bytes: int
    created_at: str
    counts: dict[str, int] = Field(default_factory=dict)
