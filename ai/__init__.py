"""AI collaborators used by the ingestion pipeline."""
