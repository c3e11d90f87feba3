"""Service storing normalized import data."""

import asyncio
import logging
import uuid
from typing import Any

from arc_data.db.repositories.document_repository import DocumentRepository
from arc_data.exceptions import ConflictError, NotFoundError
from arc_data.models.export import ExportObject, Entity, IndexableRequest
from arc_data.models.store import WriteError, WriteResult
from arc_data.utils.db_utils import get_database_entries
from arc_data.utils.request_utils import now_ms

logger = logging.getLogger(__name__)

# Export object collection -> store collection, in import order.
IMPORT_COLLECTIONS = (
    ("requests", "saved-requests"),
    ("projects", "legacy-projects"),
    ("history", "history-requests"),
    ("websocketurlhistory", "websocket-url-history"),
    ("urlhistory", "url-history"),
    ("cookies", "cookies"),
    ("authdata", "auth-data"),
    ("variables", "variables"),
    ("hostrules", "host-rules"),
    ("clientcertificates", "client-certificates"),
)

ENVIRONMENTS_COLLECTION = "variables-environments"
CERTIFICATES_DATA_COLLECTION = "client-certificates-data"
DEFAULT_ENVIRONMENT = "default"


def transform_keys(items: list[Entity]) -> list[dict[str, Any]]:
    """Turn export entities into store documents.

    The interchange only `kind` is removed and `key` becomes `_id`. Entities
    without a key get a random one.
    """
    result = []
    for item in items:
        data = dict(item)
        data.pop("kind", None)
        key = data.pop("key", None) or str(uuid.uuid4())
        data["_id"] = key
        result.append(data)
    return result


def _error_message(collection: str, error: WriteError) -> str:
    return f"{collection}/{error.id}: {error.message}"


class ImportService:
    """Service writing an export object into the document store.

    Write conflicts with existing documents are resolved by overwriting
    them, restoring deleted documents first. After an import,
    `saved_indexes` and `history_indexes` list the requests that should be
    added to the URL search index.
    """

    def __init__(self, repository: DocumentRepository, batch_size: int = 1000) -> None:
        """Initialize import service.

        Args:
            repository: Document repository
            batch_size: Page size used when reading stored environments
        """
        self.repository = repository
        self.batch_size = batch_size
        self.saved_indexes: list[IndexableRequest] | None = None
        self.history_indexes: list[IndexableRequest] | None = None

    def index_updates(self) -> list[IndexableRequest] | None:
        """Combined list of saved and history requests to index."""
        result = (self.saved_indexes or []) + (self.history_indexes or [])
        return result or None

    async def import_data(self, export: ExportObject) -> list[str] | None:
        """Store every non-empty collection of the export object.

        Per document failures never abort the import. Conflicts are
        resolved silently, only failures that remain after the conflict
        pass are reported.

        Args:
            export: Normalized export object

        Returns:
            List of error messages, or None when everything was stored
        """
        self.saved_indexes = None
        self.history_indexes = None
        errors: list[str] = []
        for name, collection in IMPORT_COLLECTIONS:
            items = export.collection(name)
            if not items:
                continue
            if name == "clientcertificates":
                errors.extend(await self.import_client_certificates(items))
                continue
            docs = transform_keys(items)
            stored, failures = await self._insert(collection, docs)
            errors.extend(failures)
            if name == "requests":
                self.saved_indexes = self._list_request_index(docs, stored, "saved")
            elif name == "history":
                self.history_indexes = self._list_request_index(docs, stored, "history")
            elif name == "variables":
                errors.extend(await self.import_environments(items))
        if errors:
            logger.warning("Import finished with %d errors", len(errors))
        return errors or None

    async def import_environments(self, variables: list[Entity]) -> list[str]:
        """Create environments referenced by variables that do not exist yet.

        Environment names are compared case-insensitively and stored lower
        cased. The default environment is never created.

        Args:
            variables: Imported variables

        Returns:
            List of error messages
        """
        names: list[str] = []
        for item in variables:
            environment = item.get("environment")
            if not isinstance(environment, str) or not environment:
                continue
            name = environment.lower()
            if name != DEFAULT_ENVIRONMENT and name not in names:
                names.append(name)
        if not names:
            return []
        stored = await get_database_entries(
            self.repository, ENVIRONMENTS_COLLECTION, self.batch_size
        )
        existing = {
            str(doc.get("name")).lower() for doc in stored if isinstance(doc.get("name"), str)
        }
        missing = [name for name in names if name not in existing]
        if not missing:
            return []
        created = now_ms()
        docs = [{"_id": str(uuid.uuid4()), "name": name, "created": created} for name in missing]
        results = await self.repository.bulk_write(ENVIRONMENTS_COLLECTION, docs)
        logger.info("Created %d environments", len(missing))
        return [
            _error_message(ENVIRONMENTS_COLLECTION, item)
            for item in results
            if isinstance(item, WriteError)
        ]

    async def import_client_certificates(self, items: list[Entity]) -> list[str]:
        """Store certificates as index and data records sharing one ID.

        Both halves are written concurrently.

        Args:
            items: Certificates with `cert` and optional `pKey`

        Returns:
            List of error messages from both halves
        """
        indexes = []
        certs = []
        for item in items:
            key = item.get("key") or str(uuid.uuid4())
            indexes.append(
                {
                    "_id": key,
                    "created": item.get("created"),
                    "dataKey": key,
                    "name": item.get("name"),
                    "type": item.get("type"),
                }
            )
            data = {"_id": key, "cert": item.get("cert")}
            if item.get("pKey"):
                data["key"] = item["pKey"]
            certs.append(data)
        (_, index_errors), (_, data_errors) = await asyncio.gather(
            self._insert("client-certificates", indexes),
            self._insert(CERTIFICATES_DATA_COLLECTION, certs),
        )
        return index_errors + data_errors

    async def _insert(
        self, collection: str, docs: list[dict[str, Any]]
    ) -> tuple[set[str], list[str]]:
        """Bulk write documents and resolve conflicts.

        Returns:
            Tuple of (IDs stored in either pass, error messages)
        """
        results = await self.repository.bulk_write(collection, docs)
        stored: set[str] = set()
        conflicted: list[dict[str, Any]] = []
        errors: list[str] = []
        for doc, result in zip(docs, results):
            if isinstance(result, WriteResult):
                stored.add(result.id)
            elif result.conflict:
                conflicted.append(doc)
            else:
                errors.append(_error_message(collection, result))
        if conflicted:
            logger.debug("Resolving %d conflicts in %s", len(conflicted), collection)
            retried, retry_errors = await self._handle_conflicted_inserts(collection, conflicted)
            stored |= retried
            errors.extend(retry_errors)
        return stored, errors

    async def _handle_conflicted_inserts(
        self, collection: str, conflicted: list[dict[str, Any]]
    ) -> tuple[set[str], list[str]]:
        """Overwrite stored documents with the conflicted imported ones."""
        revisions = await self.repository.get_revisions(
            collection, [doc["_id"] for doc in conflicted]
        )
        docs = []
        for doc, info in zip(conflicted, revisions):
            doc = dict(doc)
            if info is None:
                doc.pop("_rev", None)
            elif info.deleted:
                doc["_rev"] = await self._undelete(collection, doc["_id"])
            else:
                doc["_rev"] = info.rev
            docs.append(doc)
        results = await self.repository.bulk_write(collection, docs)
        stored = {item.id for item in results if isinstance(item, WriteResult)}
        errors = [
            _error_message(collection, item) for item in results if isinstance(item, WriteError)
        ]
        return stored, errors

    async def _undelete(self, collection: str, doc_id: str) -> str | None:
        """Restore a deleted document and return its new revision."""
        try:
            doc = await self.repository.get(collection, doc_id, include_deleted=True)
            doc["_deleted"] = False
            result = await self.repository.put(collection, doc)
        except (NotFoundError, ConflictError) as e:
            logger.warning("Unable to restore %s/%s: %s", collection, doc_id, e)
            return None
        return result.rev

    def _list_request_index(
        self, docs: list[dict[str, Any]], stored: set[str], request_type: str
    ) -> list[IndexableRequest] | None:
        result = []
        seen: set[str] = set()
        for doc in docs:
            if doc["_id"] in stored and doc["_id"] not in seen:
                seen.add(doc["_id"])
                result.append(
                    IndexableRequest(id=doc["_id"], url=str(doc.get("url") or ""), type=request_type)
                )
        return result or None
