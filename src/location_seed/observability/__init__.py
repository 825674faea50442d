"""
Structured logging and Prometheus metrics for the loader.
"""
