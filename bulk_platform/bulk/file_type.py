from __future__ import annotations

from enum import Enum


class BulkFileType(str, Enum):
    CSV = "Csv"
    TSV = "Tsv"

    @property
    def delimiter(self) -> str:
        return "\t" if self is BulkFileType.TSV else ","

    @property
    def extension(self) -> str:
        return ".tsv" if self is BulkFileType.TSV else ".csv"
