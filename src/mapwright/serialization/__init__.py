"""Visual Config export and import.

    export_visual_config(graph, name) -> VisualConfigDocument
    import_visual_config(document) -> MappingGraph
"""

from mapwright.serialization.exporter import dumps, export_visual_config
from mapwright.serialization.importer import (
    expand_connected_fields,
    import_visual_config,
    loads,
    reconstruct_coalesce_rules,
)
from mapwright.serialization.inference import infer_field_type, infer_fields

__all__ = [
    "dumps",
    "expand_connected_fields",
    "export_visual_config",
    "import_visual_config",
    "infer_field_type",
    "infer_fields",
    "loads",
    "reconstruct_coalesce_rules",
]
