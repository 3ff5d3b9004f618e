# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Description: dependencies.py
# -----------------------------------------------------------------------------
from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException

from api.AppContainer import AppContainer
from services.BatchEmbeddingService import BatchEmbeddingService
from services.CoverageService import CoverageService
from services.EmbeddingService import EmbeddingService
from services.HealthService import HealthService
from services.SearchService import SearchService

@lru_cache
def get_container() -> AppContainer:
    # built on first request, not at import time
    return AppContainer()

def get_owner_id(x_owner_id: Optional[str] = Header(None, alias="X-Owner-Id")) -> str:
    owner_id = (x_owner_id or "").strip()
    if not owner_id:
        raise HTTPException(status_code=401, detail="Missing X-Owner-Id header")
    return owner_id

def get_embedding_service() -> EmbeddingService:
    return get_container().embedding_service

def get_batch_service() -> BatchEmbeddingService:
    return get_container().batch_service

def get_search_service() -> SearchService:
    return get_container().search_service

def get_coverage_service() -> CoverageService:
    return get_container().coverage_service

def get_health_service() -> HealthService:
    return get_container().health_service
