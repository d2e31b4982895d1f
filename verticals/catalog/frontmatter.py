"""
SKILL.md frontmatter parsing.

Only the leading `---` block is read, and only four keys matter:

    ---
    name: stripe-checkout
    description: >-
      Accept card payments with hosted checkout
      and automatic tax.
    metadata:
      category: payments
      tags: [stripe, "checkout"]
    ---

- name: top-level line, surrounding quotes stripped
- description: inline value, or a folded/literal block (>-, >, |) whose
  indented lines are joined with single spaces
- category: may be nested under another key
- tags: inline [a, b] list only
"""
from __future__ import annotations
from typing import Optional
import re

from pydantic import BaseModel, Field

_FRONTMATTER_RE = re.compile(r"^---\n(.*?)\n---", re.DOTALL)
_NAME_RE = re.compile(r"^name:\s*(.+)$", re.MULTILINE)
_DESCRIPTION_KEY_RE = re.compile(r"^description:\s*")
_CATEGORY_RE = re.compile(r"^\s*category:\s*(.+)$", re.MULTILINE)
_TAGS_RE = re.compile(r"^\s*tags:\s*\[([^\]]*)\]", re.MULTILINE)
_BLOCK_INDICATORS = (">-", ">", "|")


class SkillMeta(BaseModel):
    """Metadata parsed from a SKILL.md header."""
    name: str = ""
    description: str = ""
    category: str = ""
    tags: list[str] = Field(default_factory=list)


def strip_quotes(value: str) -> str:
    """Drop one leading and one trailing quote character."""
    return re.sub(r"""^["']|["']$""", "", value.strip())


def parse_description(frontmatter: str) -> str:
    description = ""
    in_block = False

    for line in frontmatter.split("\n"):
        if _DESCRIPTION_KEY_RE.match(line):
            value = _DESCRIPTION_KEY_RE.sub("", line).strip()
            if value in _BLOCK_INDICATORS:
                in_block = True
                continue
            description = strip_quotes(value)
            break
        if in_block:
            if re.match(r"^\S", line) and line.strip():
                break  # next top-level key
            if line.strip():
                description += (" " if description else "") + line.strip()

    return description


def parse_frontmatter(content: str) -> Optional[SkillMeta]:
    """Parse the frontmatter block; None when the file has none."""
    content = content.replace("\r\n", "\n")
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return None

    fm = match.group(1)
    meta = SkillMeta()

    name_match = _NAME_RE.search(fm)
    if name_match:
        meta.name = strip_quotes(name_match.group(1))

    meta.description = parse_description(fm)

    category_match = _CATEGORY_RE.search(fm)
    if category_match:
        meta.category = strip_quotes(category_match.group(1))

    tags_match = _TAGS_RE.search(fm)
    if tags_match:
        meta.tags = [strip_quotes(t) for t in tags_match.group(1).split(",") if strip_quotes(t)]

    return meta
