"""Pydantic schemas for the search administration API."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class TaskResponse(BaseModel):
    """Engine task issued by a mutating operation."""

    model_config = ConfigDict(from_attributes=True)

    index_name: str
    task_id: int


class RecordBatchRequest(BaseModel):
    """Schema for indexing a batch of records."""

    records: list[dict[str, Any]] = Field(
        ...,
        min_length=1,
        description="Records to index, each with a unique objectID",
    )


class RecordBatchResponse(BaseModel):
    """Outcome of indexing a batch of records."""

    indexed: int
    truncated_ids: list[Any] = Field(default_factory=list)
    discarded_ids: list[Any] = Field(default_factory=list)
    notices: list[str] = Field(default_factory=list)
    task: Optional[TaskResponse] = None


class PublishSettingsRequest(BaseModel):
    """Schema for publishing index settings."""

    settings: dict[str, Any] = Field(..., description="Index settings to publish")
    forward_to_replicas: bool = False
    merge_settings: bool = Field(
        False, description="Merge over the settings currently online"
    )
    merge_settings_from: Optional[str] = Field(
        None,
        min_length=1,
        description="Index to read online settings from (defaults to the target index)",
    )


class ReplaceSynonymsRequest(BaseModel):
    """Schema for replacing the synonyms of an index."""

    synonyms: list[dict[str, Any]] = Field(default_factory=list)


class CopyEntriesRequest(BaseModel):
    """Schema for copying synonyms or rules between indices."""

    from_index_name: str = Field(..., min_length=1)
    to_index_name: str = Field(..., min_length=1)


class WaitTaskRequest(BaseModel):
    """Schema for waiting on an explicit task or on the last tracked one."""

    index_name: Optional[str] = Field(None, min_length=1)
    task_id: Optional[int] = Field(None, ge=0)


class WaitTaskResponse(BaseModel):
    """Task waited on, or null when there was nothing to wait for."""

    task: Optional[TaskResponse] = None


class ScopedKeyRequest(BaseModel):
    """Schema for generating a scoped search key."""

    parent_key: str = Field(..., min_length=1)
    restrictions: dict[str, Any] = Field(default_factory=dict)


class ScopedKeyResponse(BaseModel):
    key: str
