from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from collector.models.domain import ContentRecord, ContentType, License, RawItem
from collector.services.deduplicator import derive_id
from collector.services.normalizer import normalize_item, parse_published, strip_html

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def test_strip_html_removes_tags_and_entities():
    assert strip_html("<p>Hello <b>world</b></p>") == "Hello world"
    assert strip_html("Fish &amp; chips") == "Fish & chips"
    assert strip_html("&lt;p&gt;Escaped&lt;/p&gt;") == "Escaped"
    assert strip_html(None) == ""


def test_strip_html_keeps_decoded_angle_brackets_in_text():
    assert strip_html("x&lt;y and z&gt;w") == "x<y and z>w"
    assert strip_html("&lt;b&gt;bold&lt;/b&gt; while 1 &lt; 2") == "bold while 1 < 2"


def test_parse_published_accepts_rfc822_and_iso():
    assert parse_published("Tue, 10 Jun 2025 12:00:00 GMT") == datetime(2025, 6, 10, 12, tzinfo=timezone.utc)
    assert parse_published("2025-01-02T03:04:05Z") == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert parse_published("2025-01-02T12:00:00+09:00") == datetime(2025, 1, 2, 3, tzinfo=timezone.utc)


def test_parse_published_falls_back_to_now():
    assert parse_published("yesterday-ish", now=NOW) == NOW
    assert parse_published(None, now=NOW) == NOW


def test_normalize_caps_excerpt_and_guards_restricted_text():
    item = RawItem(
        title="  <i>Deep</i> sea vents  ",
        description="<p>" + "a" * 500 + "</p>",
        link="https://example.com/vents",
        published="2025-05-30T00:00:00Z",
    )

    record = normalize_item(item, source="https://example.com/rss", tags=["Science", " Ocean "], license=License.RSS)

    assert record.id == derive_id("https://example.com/vents")
    assert record.title == "Deep sea vents"
    assert len(record.excerpt) == 200
    assert record.full_text == record.excerpt
    assert record.tags == ["science", "ocean"]
    assert record.created_at is None


def test_public_domain_keeps_full_text():
    item = RawItem(title="Ode", description="line " * 100, link="https://example.com/ode")

    record = normalize_item(
        item,
        source="poems",
        tags=["poetry"],
        license=License.PUBLIC_DOMAIN,
        content_type=ContentType.POEM,
        now=NOW,
    )

    assert len(record.full_text) > 200
    assert len(record.excerpt) == 200
    assert record.published_at == NOW


def test_missing_title_becomes_untitled():
    record = normalize_item(RawItem(link="https://example.com/x"), source="s", tags=[], license=License.RSS, now=NOW)
    assert record.title == "Untitled"


def test_item_without_link_is_rejected():
    with pytest.raises(ValueError):
        normalize_item(RawItem(title="t"), source="s", tags=[], license=License.RSS)


def test_restricted_record_cannot_carry_full_text():
    with pytest.raises(ValidationError):
        ContentRecord(
            id="x",
            title="t",
            excerpt="e",
            full_text="b" * 201,
            published_at=NOW,
            source_url="s",
            article_url="https://example.com/x",
            license=License.RESTRICTED,
        )
