"""
location-seed: resumable bulk loader for geocoded location records.

Reads a CSV of locations, turns each row into a search document and
upserts the documents into Elasticsearch in size-bounded batches,
checkpointing progress so that an interrupted run can resume.
"""

__version__ = "0.1.0"
