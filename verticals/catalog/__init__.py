"""Skill catalog vertical.

- SKILL.md frontmatter parsing and index.json generation (routekit-index)
- Hybrid search and category browsing over the indexed skills
"""
