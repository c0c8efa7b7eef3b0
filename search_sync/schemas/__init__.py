"""Pydantic schemas for request/response validation."""

from .search_admin import (
    CopyEntriesRequest,
    PublishSettingsRequest,
    RecordBatchRequest,
    RecordBatchResponse,
    ReplaceSynonymsRequest,
    ScopedKeyRequest,
    ScopedKeyResponse,
    TaskResponse,
    WaitTaskRequest,
    WaitTaskResponse,
)

__all__ = [
    "CopyEntriesRequest",
    "PublishSettingsRequest",
    "RecordBatchRequest",
    "RecordBatchResponse",
    "ReplaceSynonymsRequest",
    "ScopedKeyRequest",
    "ScopedKeyResponse",
    "TaskResponse",
    "WaitTaskRequest",
    "WaitTaskResponse",
]
