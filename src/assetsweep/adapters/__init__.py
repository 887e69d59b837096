"""Adapter implementations for the object store and document database ports."""
