from __future__ import annotations

import os
from fastapi import APIRouter, Depends

from ..deps import catalog_store
from ...core.catalog import CatalogStore


router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthcheck(store: CatalogStore = Depends(catalog_store)):
    """Liveness plus the size of the loaded method catalog."""
    return {
        "status": "ok",
        "service": "testchat",
        "version": os.getenv("APP_VERSION", "dev"),
        "catalogMethods": len(store.snapshot()),
    }
