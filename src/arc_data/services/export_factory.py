"""Reads the data selected for export from the document store."""

import logging
from typing import Any

from arc_data.db.repositories.document_repository import DocumentRepository
from arc_data.models.export import EXPORT_COLLECTIONS, LEGACY_COLLECTION_NAMES, ExportProcessedData
from arc_data.utils.db_utils import (
    CERTIFICATES_DATA,
    CERTIFICATES_INDEX,
    get_database_entries,
    process_requests_array,
)
from arc_data.utils.request_utils import normalize_request

logger = logging.getLogger(__name__)

DATABASE_NAMES = {
    "history": "history-requests",
    "requests": "saved-requests",
    "websocketurlhistory": "websocket-url-history",
    "urlhistory": "url-history",
    "authdata": "auth-data",
    "projects": "legacy-projects",
    "hostrules": "host-rules",
    "clientcertificates": CERTIFICATES_INDEX,
}

# Collections holding requests that need normalization and the certificate join.
REQUEST_COLLECTIONS = ("requests", "history")


def get_database_name(key: str) -> str:
    """Map an export collection name to its store collection name."""
    return DATABASE_NAMES.get(key, key)


def _export_key(key: str) -> str:
    if key == "saved":
        return "requests"
    return LEGACY_COLLECTION_NAMES.get(key, key)


class ExportFactory:
    """Collects raw store documents for the export processor.

    The request map selects the collections to export. A list is exported
    as given, any other truthy value reads the whole collection from the
    store and a falsy value skips the collection.
    """

    def __init__(self, repository: DocumentRepository, batch_size: int = 1000) -> None:
        """Initialize export factory.

        Args:
            repository: Document repository
            batch_size: Number of documents read from the store in a single page
        """
        self.repository = repository
        self.batch_size = batch_size

    async def get_export_data(self, request_map: dict[str, Any]) -> list[ExportProcessedData]:
        """Read every selected collection.

        Projects are always read with saved requests. Client certificates
        referenced by exported requests are added as an extra
        `clientcertificates` entry when they are not already exported.

        Args:
            request_map: Export collection name to `True`, a list of items or a falsy value

        Returns:
            Raw data per collection

        Raises:
            ValueError: If the map names an unknown collection
        """
        selection: dict[str, Any] = {}
        for key, value in request_map.items():
            name = _export_key(key)
            if name not in EXPORT_COLLECTIONS:
                raise ValueError(f"Unknown export collection: {key}")
            if value:
                selection[name] = value

        results = [await self.prepare_export_data(key, value) for key, value in selection.items()]
        by_key = {item.key: item for item in results}

        if "requests" in selection and "projects" not in selection:
            projects = await get_database_entries(
                self.repository, get_database_name("projects"), self.batch_size
            )
            results.append(ExportProcessedData(key="projects", data=projects))

        certificates = by_key["clientcertificates"].data if "clientcertificates" in by_key else None
        known = list(certificates or [])
        added: list[dict[str, Any]] = []
        for key in REQUEST_COLLECTIONS:
            if key in by_key and by_key[key].data:
                found = await process_requests_array(self.repository, by_key[key].data, known)
                known.extend(found)
                added.extend(found)
        if added:
            logger.debug("Adding %d client certificates used by requests", len(added))
            results.append(ExportProcessedData(key="clientcertificates", data=added))
        return results

    async def prepare_export_data(self, key: str, value: Any) -> ExportProcessedData:
        """Read or copy the data of one collection."""
        result = ExportProcessedData(key=key, data=[])
        if isinstance(value, list):
            result.data = [dict(item) for item in value if isinstance(item, dict)]
        elif value:
            if key == "clientcertificates":
                result.data = await self.get_client_certificates_entries()
            else:
                docs = await get_database_entries(
                    self.repository, get_database_name(key), self.batch_size
                )
                if key in REQUEST_COLLECTIONS:
                    docs = [normalize_request(doc) for doc in docs]
                result.data = docs
        return result

    async def get_client_certificates_entries(self) -> list[dict[str, Any]] | None:
        """Read client certificates paired with their data records.

        Index records whose data record is missing are skipped.

        Returns:
            List of `{"item", "data"}` pairs, or None when there are no certificates
        """
        index_data = await get_database_entries(self.repository, CERTIFICATES_INDEX, self.batch_size)
        if not index_data:
            return None
        data = await get_database_entries(self.repository, CERTIFICATES_DATA, self.batch_size)
        by_id = {item["_id"]: item for item in data}
        result = []
        for item in index_data:
            data_key = item.pop("dataKey", None)
            cert = by_id.pop(data_key or item["_id"], None)
            if cert is None:
                logger.debug("Skipping client certificate %s without data", item["_id"])
                continue
            result.append({"item": item, "data": cert})
        return result
