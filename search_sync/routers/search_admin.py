"""Search administration API endpoints.

Indexes record batches and drives the administrative operations on
indices (settings, synonyms, query rules, task waiting, scoped keys).
"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from ..config import settings
from ..schemas.search_admin import (
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
from ..services.diagnostics import NoticeSink
from ..services.search_index_service import SearchIndexService, get_search_index_service

logger = logging.getLogger(__name__)


def verify_admin_token(x_admin_token: Optional[str] = Header(default=None)) -> None:
    """Require the X-Admin-Token header when an admin token is configured."""
    if not settings.admin_token:
        return
    if not x_admin_token or not hmac.compare_digest(x_admin_token.encode(), settings.admin_token.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token",
        )


router = APIRouter(
    prefix="/api/search",
    tags=["search-admin"],
    dependencies=[Depends(verify_admin_token)],
)


@router.post("/indexes/{index_name}/records", response_model=RecordBatchResponse)
def index_records_endpoint(
    index_name: str,
    body: RecordBatchRequest,
    service: SearchIndexService = Depends(get_search_index_service),
):
    """Prepare and index a batch of records.

    Oversized records are truncated or skipped; the consolidated report is
    returned in ``notices``.
    """
    sink = NoticeSink()
    batch, task = service.add_objects(body.records, index_name, sink=sink)

    logger.info(
        f"Indexed batch: index={index_name} indexed={len(batch.records)} "
        f"truncated={len(batch.truncated_ids)} discarded={len(batch.discarded)}"
    )
    return RecordBatchResponse(
        indexed=len(batch.records),
        truncated_ids=batch.truncated_ids,
        discarded_ids=[decision.object_id for decision in batch.discarded],
        notices=sink.drain(),
        task=TaskResponse.model_validate(task) if task else None,
    )


@router.put("/indexes/{index_name}/settings", response_model=TaskResponse)
def publish_settings_endpoint(
    index_name: str,
    body: PublishSettingsRequest,
    service: SearchIndexService = Depends(get_search_index_service),
):
    """Publish settings, optionally merged over the settings online."""
    task = service.publish_settings(
        index_name,
        body.settings,
        forward_to_replicas=body.forward_to_replicas,
        merge_settings=body.merge_settings,
        merge_settings_from=body.merge_settings_from,
    )
    return TaskResponse.model_validate(task)


@router.put("/indexes/{index_name}/synonyms", response_model=TaskResponse)
def replace_synonyms_endpoint(
    index_name: str,
    body: ReplaceSynonymsRequest,
    service: SearchIndexService = Depends(get_search_index_service),
):
    """Replace synonyms, keeping the index's alternative corrections and placeholders."""
    task = service.replace_synonyms(index_name, body.synonyms)
    return TaskResponse.model_validate(task)


@router.post("/synonyms/copy", response_model=TaskResponse)
def copy_synonyms_endpoint(
    body: CopyEntriesRequest,
    service: SearchIndexService = Depends(get_search_index_service),
):
    task = service.copy_synonyms(body.from_index_name, body.to_index_name)
    return TaskResponse.model_validate(task)


@router.post("/rules/copy", response_model=TaskResponse)
def copy_rules_endpoint(
    body: CopyEntriesRequest,
    service: SearchIndexService = Depends(get_search_index_service),
):
    task = service.copy_query_rules(body.from_index_name, body.to_index_name)
    return TaskResponse.model_validate(task)


@router.post("/tasks/wait", response_model=WaitTaskResponse)
def wait_task_endpoint(
    body: WaitTaskRequest,
    service: SearchIndexService = Depends(get_search_index_service),
):
    """Wait for an explicit task, or for the last task issued by this process."""
    task = service.wait_last_task(body.index_name, body.task_id)
    return WaitTaskResponse(task=TaskResponse.model_validate(task) if task else None)


@router.post("/keys/scoped", response_model=ScopedKeyResponse)
def scoped_key_endpoint(
    body: ScopedKeyRequest,
    service: SearchIndexService = Depends(get_search_index_service),
):
    key = service.generate_scoped_search_key(body.parent_key, body.restrictions)
    return ScopedKeyResponse(key=key)
