"""
Index sinks receiving bulk writes.
"""

from .base import IndexSink
from .client import ElasticsearchSink

__all__ = [
    "IndexSink",
    "ElasticsearchSink",
]
