"""Recognizes import data and runs the matching transformer."""

import logging
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any

from arc_data.models.export import ExportObject, ImportFormat
from arc_data.transformers import (
    transform_arc_dexie,
    transform_arc_legacy,
    transform_arc_pouch,
    transform_postman_backup,
    transform_postman_environment,
    transform_postman_v1,
    transform_postman_v2,
)
from arc_data.utils.import_utils import classify_import, prepare_import_object

logger = logging.getLogger(__name__)

Transformer = Callable[[dict[str, Any]], Awaitable[ExportObject]]


class ImportNormalizer:
    """Transforms any supported import file into the export object."""

    def __init__(self, chunk_size: int = 200) -> None:
        """Initialize normalizer.

        Args:
            chunk_size: Number of records the chunked transformers process
                before yielding to the event loop
        """
        self.transformers: dict[ImportFormat, Transformer] = {
            ImportFormat.ARC_LEGACY: transform_arc_legacy,
            ImportFormat.ARC_DEXIE: partial(transform_arc_dexie, chunk_size=chunk_size),
            ImportFormat.ARC_POUCH: transform_arc_pouch,
            ImportFormat.POSTMAN_V1: transform_postman_v1,
            ImportFormat.POSTMAN_V2: partial(transform_postman_v2, chunk_size=chunk_size),
            ImportFormat.POSTMAN_V21: partial(transform_postman_v2, chunk_size=chunk_size),
            ImportFormat.POSTMAN_BACKUP: transform_postman_backup,
            ImportFormat.POSTMAN_ENVIRONMENT: transform_postman_environment,
        }

    async def normalize(self, data: Any) -> ExportObject:
        """Parse, classify and transform import data.

        Args:
            data: File content as string or bytes, or already parsed JSON

        Returns:
            Normalized export object

        Raises:
            ImportParseError: If the content is not valid JSON
            ImportFormatError: If the data matches no known format
        """
        parsed = prepare_import_object(data)
        import_format = classify_import(parsed)
        logger.info("Normalizing import data as %s", import_format.value)
        return await self.transformers[import_format](parsed)
