"""Transformers from historical and foreign export formats to the export object."""

from arc_data.transformers.arc_dexie import transform_arc_dexie
from arc_data.transformers.arc_legacy import transform_arc_legacy
from arc_data.transformers.arc_pouch import transform_arc_pouch
from arc_data.transformers.postman_backup import transform_postman_backup
from arc_data.transformers.postman_env import transform_postman_environment
from arc_data.transformers.postman_v1 import transform_postman_v1
from arc_data.transformers.postman_v2 import transform_postman_v2

__all__ = [
    "transform_arc_legacy",
    "transform_arc_dexie",
    "transform_arc_pouch",
    "transform_postman_v1",
    "transform_postman_v2",
    "transform_postman_backup",
    "transform_postman_environment",
]
