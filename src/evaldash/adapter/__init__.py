"""Filesystem adapter for experiment documents and artifacts."""

from evaldash.adapter.documents import DocumentCache, DocumentRootError, DocumentStore

__all__ = ["DocumentCache", "DocumentRootError", "DocumentStore"]
