from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from studiobook.db import LocalStoreError
from studiobook.deps import get_resolver, get_template_store
from studiobook.models import JobCategory, TemplateIn, TemplateKind, TemplateOut
from studiobook.templates import TemplateResolver, TemplateStore

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=TemplateOut)
def resolve_template(
    kind: TemplateKind,
    category: Optional[JobCategory] = Query(default=None),
    resolver: TemplateResolver = Depends(get_resolver),
):
    """Effective template for (kind, category) after the fallback chain."""
    cat = category.value if category else None
    try:
        found = resolver.resolve(kind, cat)
    except LocalStoreError as e:
        raise HTTPException(status_code=500, detail=f"Error loading template: {e}")
    return TemplateOut(kind=kind, category=category, source=found.source, content=found.content)


@router.get("/{kind}")
def list_templates(kind: TemplateKind, store: TemplateStore = Depends(get_template_store)) -> Dict[str, Any]:
    try:
        return {"kind": kind.value, "templates": store.list_overrides(kind)}
    except LocalStoreError as e:
        raise HTTPException(status_code=500, detail=f"Error loading templates: {e}")


@router.put("")
def save_template(payload: TemplateIn, store: TemplateStore = Depends(get_template_store)):
    cat = payload.category.value if payload.category else None
    try:
        store.set_override(payload.kind, cat, payload.content)
    except LocalStoreError as e:
        raise HTTPException(status_code=500, detail=f"Error saving template: {e}")
    return {"ok": True, "kind": payload.kind.value, "category": cat}


@router.delete("/{kind}", status_code=204)
def delete_template(
    kind: TemplateKind,
    category: Optional[JobCategory] = Query(default=None),
    store: TemplateStore = Depends(get_template_store),
):
    try:
        removed = store.delete_override(kind, category.value if category else None)
    except LocalStoreError as e:
        raise HTTPException(status_code=500, detail=f"Error deleting template: {e}")
    if not removed:
        raise HTTPException(status_code=404, detail="Template not found")
