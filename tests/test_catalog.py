"""Test SKILL.md parsing, index generation and catalog search."""
import json
from datetime import datetime, timezone

import pytest

from routekit.errors import CatalogError
from verticals.catalog.catalog import SkillCatalog
from verticals.catalog.cli import main
from verticals.catalog.frontmatter import parse_frontmatter
from verticals.catalog.index import build_index, load_index, write_index


# ---------------------------------------------------------------------------
# Frontmatter
# ---------------------------------------------------------------------------

def test_parse_folded_description_and_nested_category(skill_sources):
    meta = parse_frontmatter(skill_sources["stripe-checkout"])
    assert meta.name == "stripe-checkout"
    assert meta.description == "Accept card payments with hosted checkout and automatic tax."
    assert meta.category == "payments"
    assert meta.tags == ["stripe", "checkout"]


def test_parse_quoted_values(skill_sources):
    meta = parse_frontmatter(skill_sources["razorpay-upi"])
    assert meta.name == "razorpay-upi"
    assert meta.description == "Collect UPI payments in India"


def test_parse_literal_block(skill_sources):
    meta = parse_frontmatter(skill_sources["twilio-sms"])
    assert meta.description == "Send SMS notifications worldwide"


def test_parse_crlf_line_endings(skill_sources):
    meta = parse_frontmatter(skill_sources["razorpay-upi"].replace("\n", "\r\n"))
    assert meta.name == "razorpay-upi"
    assert meta.tags == ["razorpay", "upi"]


def test_parse_without_frontmatter():
    assert parse_frontmatter("# Just a heading\n") is None
    assert parse_frontmatter("\n---\nname: late\n---\n") is None


def test_parse_missing_keys_default_empty():
    meta = parse_frontmatter("---\nname: bare\ntags: [a, , b]\n---\n")
    assert meta.name == "bare"
    assert meta.description == ""
    assert meta.category == ""
    assert meta.tags == ["a", "b"]


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------

def test_build_index(skills_dir):
    fixed = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
    index = build_index(skills_dir, clock=lambda: fixed)

    assert [s.slug for s in index.skills] == ["razorpay-upi", "stripe-checkout", "twilio-sms"]
    assert index.categories == ["notifications", "payments"]
    assert index.updated_at == "2026-01-02T03:04:05.678Z"


def test_build_index_missing_dir(tmp_path):
    with pytest.raises(CatalogError):
        build_index(tmp_path / "nope")


def test_write_and_load_index(skills_dir, tmp_path):
    out = tmp_path / "out" / "index.json"
    out.parent.mkdir()
    write_index(skills_dir, out)

    text = out.read_text(encoding="utf-8")
    assert text.endswith("}\n")
    data = json.loads(text)
    assert set(data) == {"skills", "categories", "updatedAt"}
    assert data["skills"][0] == {
        "name": "razorpay-upi",
        "slug": "razorpay-upi",
        "description": "Collect UPI payments in India",
        "category": "payments",
        "tags": ["razorpay", "upi"],
    }

    loaded = load_index(out)
    assert len(loaded.skills) == 3
    assert loaded.updated_at == data["updatedAt"]


def test_write_index_default_location(skills_dir):
    write_index(skills_dir)
    assert (skills_dir / "index.json").exists()


def test_load_index_errors(tmp_path):
    bad = tmp_path / "index.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(CatalogError):
        load_index(bad)
    with pytest.raises(CatalogError):
        load_index(tmp_path / "missing.json")


def test_cli(skills_dir, capsys):
    assert main([str(skills_dir)]) == 0
    out = capsys.readouterr().out
    assert "Generated index.json with 3 skills and 2 categories" in out
    assert (skills_dir / "index.json").exists()


def test_cli_missing_dir(tmp_path, capsys):
    assert main([str(tmp_path / "nope")]) == 1
    assert "error:" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_catalog_search(skills_dir):
    catalog = SkillCatalog.from_directory(skills_dir)
    hits = await catalog.search("upi india")
    assert hits[0].slug == "razorpay-upi"
    assert hits[0].score > 0


@pytest.mark.asyncio
async def test_catalog_search_by_category(skills_dir):
    catalog = SkillCatalog.from_directory(skills_dir)
    hits = await catalog.search("hosted checkout sms", category="payments")
    assert hits
    assert hits[0].slug == "stripe-checkout"
    assert all(h.category == "payments" for h in hits)


def test_catalog_browse(skills_dir):
    catalog = SkillCatalog.from_directory(skills_dir)
    assert len(catalog) == 3
    assert catalog.categories == ["notifications", "payments"]
    assert [s.slug for s in catalog.by_category("payments")] == ["razorpay-upi", "stripe-checkout"]
    assert catalog.get("twilio-sms").tags == ["twilio", "sms"]
    assert catalog.get("missing") is None


def test_catalog_from_index_file(skills_dir):
    write_index(skills_dir)
    catalog = SkillCatalog.from_index_file(skills_dir / "index.json")
    assert len(catalog) == 3
