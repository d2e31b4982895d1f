"""Shared fixtures: a small skills directory on disk."""
import pytest

SKILLS = {
    "stripe-checkout": """---
name: stripe-checkout
description: >-
  Accept card payments with hosted checkout
  and automatic tax.
metadata:
  category: payments
  tags: [stripe, "checkout"]
---

# Stripe Checkout
""",
    "razorpay-upi": """---
name: "razorpay-upi"
description: 'Collect UPI payments in India'
category: payments
tags: [razorpay, upi]
---
""",
    "twilio-sms": """---
name: twilio-sms
description: |
  Send SMS notifications
  worldwide
category: notifications
tags: [twilio, sms]
---
""",
}


@pytest.fixture
def skill_sources():
    return dict(SKILLS)


@pytest.fixture
def skills_dir(tmp_path):
    root = tmp_path / "skills"
    root.mkdir()
    for slug, content in SKILLS.items():
        (root / slug).mkdir()
        (root / slug / "SKILL.md").write_text(content, encoding="utf-8")
    # Skipped: no SKILL.md, and no name
    (root / "empty-dir").mkdir()
    (root / "nameless").mkdir()
    (root / "nameless" / "SKILL.md").write_text("---\ndescription: orphan\n---\n", encoding="utf-8")
    # Loose files are ignored
    (root / "README.md").write_text("# Skills\n", encoding="utf-8")
    return root
