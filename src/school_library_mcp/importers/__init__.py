"""Text importers for bulk-adding books and students."""

from .text_import import (
    ParseFailure,
    SamplingTextImporter,
    TabularTextImporter,
    TextImportAdapter,
    build_importer,
    check_import_text,
    extract_json_array,
)

__all__ = [
    "ParseFailure",
    "SamplingTextImporter",
    "TabularTextImporter",
    "TextImportAdapter",
    "build_importer",
    "check_import_text",
    "extract_json_array",
]
