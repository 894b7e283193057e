"""Backing store client for worker replicas. Not used by the control loop."""

from autoscaler.store.client import DocumentStoreClient, document_key, resolve_store_url
from autoscaler.store.retry import RetryPolicy, retry_async

__all__ = ["DocumentStoreClient", "RetryPolicy", "document_key", "resolve_store_url", "retry_async"]
