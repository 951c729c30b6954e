"""
SettleWatch Conversion Pipeline Package.

Glue between stable-file notifications and the external converter.
Requires Python 3.11+.
"""

from pipeline.converter import ConversionError, Converter
from pipeline.filters import ExtensionFilter
from pipeline.index import FileIndex, FileIndexEntry, hash_file_name
from pipeline.runner import ConversionPipeline, HandleResult

__all__ = [
    "ConversionError",
    "ConversionPipeline",
    "Converter",
    "ExtensionFilter",
    "FileIndex",
    "FileIndexEntry",
    "HandleResult",
    "hash_file_name",
]
