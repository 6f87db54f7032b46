"""Pipelines for ingestion, normalization, querying, and matching.

Each step is callable independently so the API handlers and offline scripts
share the same code paths.
"""
