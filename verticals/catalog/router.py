"""Skill catalog API router.

- GET /search?q=... — hybrid search over skills
- GET /categories — category list with counts
- GET /{slug} — one skill
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from verticals.catalog.catalog import SkillCatalog

router = APIRouter()


def get_catalog(request: Request) -> SkillCatalog:
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        raise HTTPException(status_code=503, detail="Skill catalog not configured")
    return catalog


@router.get("/search")
async def search_skills(
    q: str = Query(..., min_length=1),
    top_k: int = Query(10, ge=1, le=50),
    category: Optional[str] = None,
    catalog: SkillCatalog = Depends(get_catalog),
):
    hits = await catalog.search(q, top_k=top_k, category=category)
    return {"query": q, "results": [h.model_dump() for h in hits]}


@router.get("/categories")
async def list_categories(catalog: SkillCatalog = Depends(get_catalog)):
    return {
        "categories": [
            {"name": c, "count": len(catalog.by_category(c))} for c in catalog.categories
        ]
    }


@router.get("/{slug}")
async def get_skill(slug: str, catalog: SkillCatalog = Depends(get_catalog)):
    skill = catalog.get(slug)
    if not skill:
        raise HTTPException(status_code=404, detail="Skill not found")
    return skill.model_dump()
