"""Sorties du pipeline: export CSV et progression Rich."""

from .csv_writer import CSV_COLUMNS, CSVRecordSink, record_to_row
from .progress import RichProgressSink, format_record

__all__ = [
    "CSV_COLUMNS",
    "CSVRecordSink",
    "RichProgressSink",
    "format_record",
    "record_to_row",
]
