"""Paginated reads and client certificate lookups on the document store."""

import logging
from typing import Any

from arc_data.db.repositories.document_repository import DocumentRepository
from arc_data.exceptions import NotFoundError
from arc_data.models.export import Entity

logger = logging.getLogger(__name__)

CERTIFICATES_INDEX = "client-certificates"
CERTIFICATES_DATA = "client-certificates-data"
CLIENT_CERTIFICATE_AUTH = "client certificate"


async def get_entry(
    repository: DocumentRepository, collection: str, doc_id: str
) -> dict[str, Any] | None:
    """Read a document, or None when it does not exist."""
    try:
        return await repository.get(collection, doc_id)
    except NotFoundError:
        return None


async def get_database_entries(
    repository: DocumentRepository, collection: str, limit: int
) -> list[dict[str, Any]]:
    """Read every live document of a collection in pages of `limit`.

    Each page continues from the last read key, skipping that key. A page
    shorter than `limit` ends the scan.

    Args:
        repository: Document repository
        collection: Collection name
        limit: Page size

    Returns:
        All documents of the collection
    """
    result: list[dict[str, Any]] = []
    start_key: str | None = None
    skip = 0
    while True:
        page = await repository.scan(collection, limit=limit, start_key=start_key, skip=skip)
        result.extend(page.docs)
        if len(page.docs) < limit or page.next_start_key is None:
            break
        start_key = page.next_start_key
        skip = 1
    logger.debug("Read %d documents from %s", len(result), collection)
    return result


async def read_client_certificate_if_needed(
    repository: DocumentRepository,
    cert_id: str | None,
    certificates: list[dict[str, Any]] | None = None,
) -> dict[str, Any] | None:
    """Read a client certificate unless it is already in `certificates`.

    Args:
        repository: Document repository
        cert_id: The certificate ID
        certificates: Already read `{"item", "data"}` certificate pairs

    Returns:
        A `{"item", "data"}` pair, or None when the certificate is known,
        missing, or has no data half
    """
    if not cert_id:
        return None
    if certificates:
        for cert in certificates:
            if cert["item"].get("_id") == cert_id:
                return None
    index = await get_entry(repository, CERTIFICATES_INDEX, cert_id)
    if not index:
        return None
    data = await get_entry(repository, CERTIFICATES_DATA, index.get("dataKey") or cert_id)
    if not data:
        logger.warning("Client certificate %s has no data record", cert_id)
        return None
    index.pop("dataKey", None)
    return {"item": index, "data": data}


async def process_requests_array(
    repository: DocumentRepository,
    requests: list[Entity],
    certificates: list[dict[str, Any]] | None = None,
) -> list[dict[str, Any]]:
    """Collect client certificates referenced by requests.

    Args:
        repository: Document repository
        requests: Stored requests
        certificates: Certificates already present in the export

    Returns:
        Certificate pairs that are not yet part of the export
    """
    known = list(certificates or [])
    added: list[dict[str, Any]] = []
    for request in requests:
        if not request or request.get("authType") != CLIENT_CERTIFICATE_AUTH:
            continue
        auth = request.get("auth")
        if not isinstance(auth, dict):
            continue
        cert = await read_client_certificate_if_needed(repository, auth.get("id"), known)
        if cert:
            known.append(cert)
            added.append(cert)
    return added
