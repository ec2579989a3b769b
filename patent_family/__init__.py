"""Patent family acquisition and enrichment service."""
