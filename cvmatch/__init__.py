"""Backend package: models, storage, pipelines, APIs.

This package orchestrates normalization of extracted CV fields, identity
assignment, JSON-file persistence, resume listing and job matching.
"""
