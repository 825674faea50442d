"""
Core types shared by the ingestion pipeline: errors and data models.
"""
