"""Snapshot core: storage, indexing, capture, diff, lifecycle and integrity."""
