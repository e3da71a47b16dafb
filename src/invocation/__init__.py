"""Invocation adapters.

This module connects the runtime trigger to the ingest pipeline.
It owns event decoding and response shaping only.
"""
