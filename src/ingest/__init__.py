"""Streaming ingest pipeline.

This module fetches compressed NDJSON objects and counts their records.
Every stage pulls from its upstream so memory stays bounded.
"""
