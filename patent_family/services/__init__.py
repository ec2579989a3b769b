"""Acquisition, enrichment and import services."""
