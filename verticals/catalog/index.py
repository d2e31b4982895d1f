"""
Skill catalog index — skills/index.json built from every <slug>/SKILL.md.

    {
      "skills": [{"name", "slug", "description", "category", "tags"}, ...],
      "categories": ["payments", ...],
      "updatedAt": "2026-01-01T00:00:00.000Z"
    }

Directories are visited in sorted order; ones without a readable SKILL.md
or without a name are skipped.
"""
from __future__ import annotations
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Union
import json

from pydantic import BaseModel, Field

from routekit.errors import CatalogError
from routekit.observability import get_logger
from verticals.catalog.frontmatter import parse_frontmatter

logger = get_logger(__name__)

INDEX_FILENAME = "index.json"
SKILL_FILENAME = "SKILL.md"


class SkillEntry(BaseModel):
    name: str
    slug: str
    description: str = ""
    category: str = ""
    tags: list[str] = Field(default_factory=list)


class SkillIndex(BaseModel):
    skills: list[SkillEntry] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    updated_at: str = ""

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "skills": [s.model_dump() for s in self.skills],
            "categories": list(self.categories),
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_json_dict(cls, data: dict[str, Any]) -> "SkillIndex":
        return cls(
            skills=[SkillEntry(**s) for s in data.get("skills", [])],
            categories=list(data.get("categories", [])),
            updated_at=data.get("updatedAt", ""),
        )


def iso_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_index(
    skills_dir: Union[str, Path],
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> SkillIndex:
    """Scan skills_dir/<slug>/SKILL.md and collect metadata."""
    root = Path(skills_dir)
    if not root.is_dir():
        raise CatalogError(f"Skills directory not found: {root}")

    entries: list[SkillEntry] = []
    categories: set[str] = set()

    for skill_dir in sorted((p for p in root.iterdir() if p.is_dir()), key=lambda p: p.name):
        skill_file = skill_dir / SKILL_FILENAME
        try:
            content = skill_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("catalog.skipped", slug=skill_dir.name, reason=type(exc).__name__)
            continue

        meta = parse_frontmatter(content)
        if not meta or not meta.name:
            logger.debug("catalog.skipped", slug=skill_dir.name, reason="no name")
            continue

        entries.append(SkillEntry(
            name=meta.name,
            slug=skill_dir.name,
            description=meta.description,
            category=meta.category,
            tags=meta.tags,
        ))
        if meta.category:
            categories.add(meta.category)

    return SkillIndex(
        skills=entries,
        categories=sorted(categories),
        updated_at=iso_timestamp(clock()),
    )


def write_index(
    skills_dir: Union[str, Path],
    out_path: Optional[Union[str, Path]] = None,
) -> SkillIndex:
    """Build the index and write it as pretty JSON."""
    index = build_index(skills_dir)
    target = Path(out_path) if out_path else Path(skills_dir) / INDEX_FILENAME
    target.write_text(
        json.dumps(index.to_json_dict(), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    logger.info(
        "catalog.index_written",
        path=str(target),
        skills=len(index.skills),
        categories=len(index.categories),
    )
    return index


def load_index(path: Union[str, Path]) -> SkillIndex:
    """Read a previously written index.json."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogError(f"Cannot read skill index {path}: {exc}") from exc
    return SkillIndex.from_json_dict(data)
