"""
Skill Catalog — hybrid search over the skill index.

Each skill is indexed as name + description + tags + category, so both
exact vendor names ("razorpay") and loose descriptions ("accept payments
in india") find it.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

from routekit.search import HybridSearchEngine
from verticals.catalog.index import SkillEntry, SkillIndex, build_index, load_index


class SkillHit(BaseModel):
    slug: str
    name: str
    description: str = ""
    category: str = ""
    tags: list[str] = Field(default_factory=list)
    score: float


class SkillCatalog:
    """In-memory catalog with hybrid search and category browsing."""

    def __init__(self, index: SkillIndex, engine: Optional[HybridSearchEngine] = None):
        self.index = index
        self.engine = engine or HybridSearchEngine()
        self._by_slug: dict[str, SkillEntry] = {s.slug: s for s in index.skills}
        self.engine.index_documents([
            {
                "id": skill.slug,
                "content": " ".join(
                    part for part in (skill.name, skill.description, " ".join(skill.tags), skill.category) if part
                ),
                "metadata": {"category": skill.category},
            }
            for skill in index.skills
        ])

    @classmethod
    def from_directory(cls, skills_dir: Union[str, Path], engine: Optional[HybridSearchEngine] = None) -> "SkillCatalog":
        return cls(build_index(skills_dir), engine=engine)

    @classmethod
    def from_index_file(cls, path: Union[str, Path], engine: Optional[HybridSearchEngine] = None) -> "SkillCatalog":
        return cls(load_index(path), engine=engine)

    def __len__(self) -> int:
        return len(self._by_slug)

    @property
    def categories(self) -> list[str]:
        return list(self.index.categories)

    def get(self, slug: str) -> Optional[SkillEntry]:
        return self._by_slug.get(slug)

    def by_category(self, category: str) -> list[SkillEntry]:
        return [s for s in self.index.skills if s.category == category]

    async def search(self, query: str, top_k: int = 10, category: Optional[str] = None) -> list[SkillHit]:
        # Category filtering happens after fusion, so fetch everything first
        fetch = len(self) if category else top_k
        result = await self.engine.search(query, top_k=fetch)

        hits = []
        for r in result.results:
            skill = self._by_slug[r.id]
            if category and skill.category != category:
                continue
            hits.append(SkillHit(**skill.model_dump(), score=r.score))
            if len(hits) >= top_k:
                break
        return hits
