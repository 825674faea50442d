"""
Input row sources.
"""

from .csv_reader import CSVRowReader, RawRecord

__all__ = [
    "CSVRowReader",
    "RawRecord",
]
