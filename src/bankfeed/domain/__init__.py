"""Domain layer - models, extraction, parsing and ingestion logic."""
