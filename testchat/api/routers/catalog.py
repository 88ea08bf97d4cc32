from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field

from ..auth import admin_required, jwt_required
from ..deps import catalog_store, settings_store
from ...core.catalog import SAMPLE_METHODS, CatalogError, CatalogStore, MethodCatalog
from ...core.settings_store import SettingsStore
from ...services.config_service import (
    clear_uploaded_methods,
    load_test_config,
    save_test_config,
    save_uploaded_methods,
)
from ...services.java_test_parser import JavaSourceCatalogProvider, parse_sources


router = APIRouter(prefix="/catalog", tags=["catalog"], dependencies=[Depends(jwt_required)])
logger = logging.getLogger(__name__)


class ScanRequest(BaseModel):
    path: Optional[str] = Field(None, description="TestNG project root; defaults to the configured test root.")
    remember: bool = Field(True, description="Store the path as the configured test root after a successful scan.")


def _catalog_payload(catalog: MethodCatalog) -> Dict[str, Any]:
    classes = sorted({method.class_name for method in catalog})
    return {"count": len(catalog), "classes": classes, "methods": catalog.to_dicts()}


def _publish(store: CatalogStore, settings: SettingsStore, methods: List) -> MethodCatalog:
    try:
        catalog = store.replace(methods)
    except CatalogError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    save_uploaded_methods(settings, list(catalog))
    return catalog


@router.get("/methods")
async def list_methods(store: CatalogStore = Depends(catalog_store)) -> dict:
    return _catalog_payload(store.snapshot())


@router.post("/upload", dependencies=[Depends(admin_required)])
async def upload_java_files(
    files: List[UploadFile] = File(..., description="TestNG .java sources; other files are ignored"),
    store: CatalogStore = Depends(catalog_store),
    settings: SettingsStore = Depends(settings_store),
) -> dict:
    sources = []
    for upload in files:
        name = upload.filename or ""
        if not name.endswith(".java"):
            logger.info("[API] Ignoring non-Java upload %s", name)
            continue
        raw = await upload.read()
        sources.append((name, raw.decode("utf-8", errors="replace")))
    if not sources:
        raise HTTPException(status_code=400, detail="No .java files were uploaded")

    methods = parse_sources(sources)
    catalog = _publish(store, settings, methods)
    logger.info("[API] Catalog replaced from %d uploaded file(s): %d method(s)", len(sources), len(catalog))
    payload = _catalog_payload(catalog)
    payload["files"] = len(sources)
    return payload


@router.post("/scan", dependencies=[Depends(admin_required)])
async def scan_project(
    req: ScanRequest,
    store: CatalogStore = Depends(catalog_store),
    settings: SettingsStore = Depends(settings_store),
) -> dict:
    config = load_test_config(settings)
    root = (req.path or "").strip() or config.test_root_path
    if not root:
        raise HTTPException(status_code=400, detail="No test root configured; pass a path")
    try:
        methods = JavaSourceCatalogProvider(Path(root).expanduser()).list()
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    catalog = _publish(store, settings, methods)
    if req.remember and root != config.test_root_path:
        save_test_config(settings, config.model_copy(update={"test_root_path": root}))
    return _catalog_payload(catalog)


@router.post("/sample", dependencies=[Depends(admin_required)])
async def load_sample_methods(
    store: CatalogStore = Depends(catalog_store),
    settings: SettingsStore = Depends(settings_store),
) -> dict:
    return _catalog_payload(_publish(store, settings, list(SAMPLE_METHODS)))


@router.delete("", dependencies=[Depends(admin_required)])
async def clear_catalog(
    store: CatalogStore = Depends(catalog_store),
    settings: SettingsStore = Depends(settings_store),
) -> dict:
    store.clear()
    clear_uploaded_methods(settings)
    return {"status": "cleared", "count": 0}
