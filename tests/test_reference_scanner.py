# =============================================================================
# tests/test_reference_scanner.py - Reference Scanner Tests
# =============================================================================
# This module contains tests for:
# - Classification of inline / legacy / canonical references
# - Field path construction while walking nested trees
# - The "interesting field" filter
# - Data URI, legacy URL and canonical URL parsers
# - The read-only scan job
# =============================================================================

from __future__ import annotations

import re

import pytest

from app.exceptions import ReferenceParseError
from core.models.references import ReferenceKind
from core.services.reference_scan import ScanMode, scan_references
from core.services.reference_scanner import (
    ReferenceClassifier,
    inline_mime,
    parse_canonical_key,
    parse_data_uri,
    parse_legacy_object_name,
)
from tests.conftest import CANONICAL_BASE


def _collect(scanner, value, interesting=False):
    hits = []

    def on_hit(path, reference, kind):
        hits.append((path, reference, kind))

    if interesting:
        scanner.walk_interesting(value, on_hit)
    else:
        scanner.walk(value, on_hit)
    return hits


# =============================================================================
# Classification
# =============================================================================

class TestClassification:
    """Test the three reference shapes."""

    def test_inline_png(self, classifier):
        value = "data:image/png;base64,iVBORw0KGgoAAAA"

        assert classifier.classify(value) == ReferenceKind.INLINE
        assert inline_mime(value) == "image/png"

    def test_legacy_url(self, classifier):
        url = "https://legacy.example.com/o/foo%2Fbar.jpg"

        assert classifier.classify(url) == ReferenceKind.LEGACY
        assert classifier.object_key_for(url, ReferenceKind.LEGACY) == "foo/bar.jpg"

    def test_canonical_url(self, classifier):
        url = f"{CANONICAL_BASE}/logos/b1/123_logo.png"

        assert classifier.classify(url) == ReferenceKind.CANONICAL
        assert classifier.object_key_for(url, ReferenceKind.CANONICAL) == "logos/b1/123_logo.png"

    def test_canonical_checked_before_legacy(self):
        pattern = re.compile(r"https?://cdn\.example\.com")
        classifier = ReferenceClassifier(CANONICAL_BASE, pattern)

        assert classifier.classify(f"{CANONICAL_BASE}/a.png") == ReferenceKind.CANONICAL

    def test_inline_checked_before_urls(self, classifier):
        # A data URI that happens to mention the legacy host
        value = "data:image/png;base64,bGVnYWN5LmV4YW1wbGUuY29t"
        assert classifier.classify(value) == ReferenceKind.INLINE

    @pytest.mark.parametrize("value", [
        "https://example.org/picture.png",
        "just text",
        "",
        "   ",
        f"{CANONICAL_BASE}evil.com/a.png",
        42,
        None,
        True,
    ])
    def test_non_references(self, classifier, value):
        assert classifier.classify(value) is None

    def test_no_legacy_pattern_disables_legacy(self):
        classifier = ReferenceClassifier(CANONICAL_BASE, None)
        assert classifier.classify("https://legacy.example.com/o/a.png") is None

    def test_surrounding_whitespace_is_ignored(self, classifier):
        assert classifier.classify("  https://legacy.example.com/o/a.png \n") == ReferenceKind.LEGACY


# =============================================================================
# Walking
# =============================================================================

class TestWalk:
    """Test recursive traversal and field paths."""

    def test_nested_paths(self, scanner):
        doc = {
            "logo": "https://legacy.example.com/o/logo.png",
            "images": [
                {"url": "https://legacy.example.com/o/a.png"},
                {"url": f"{CANONICAL_BASE}/b.png"},
            ],
            "gallery": [["data:image/jpeg;base64,AAAA"]],
            "profile": {"avatar": {"src": "https://legacy.example.com/o/c.png"}},
        }

        paths = {path: kind for path, _, kind in _collect(scanner, doc)}

        assert paths == {
            "logo": ReferenceKind.LEGACY,
            "images[0].url": ReferenceKind.LEGACY,
            "images[1].url": ReferenceKind.CANONICAL,
            "gallery[0][0]": ReferenceKind.INLINE,
            "profile.avatar.src": ReferenceKind.LEGACY,
        }

    def test_heterogeneous_tree_does_not_crash(self, scanner):
        doc = {
            "a": None,
            "b": 1.5,
            "c": [None, 3, False, {"d": None}],
            "e": {},
            "f": [],
            "g": "https://legacy.example.com/o/x.png",
        }

        hits = _collect(scanner, doc)

        assert [(p, k) for p, _, k in hits] == [("g", ReferenceKind.LEGACY)]

    def test_root_string(self, scanner):
        hits = _collect(scanner, "https://legacy.example.com/o/x.png")
        assert hits[0][0] == "(root)"

    def test_path_prefix(self, scanner):
        hits = []
        scanner.walk({"url": "https://legacy.example.com/o/x.png"}, lambda p, r, k: hits.append(p), "items[3]")
        assert hits == ["items[3].url"]

    def test_reported_reference_is_stripped(self, scanner):
        hits = _collect(scanner, {"logo": " https://legacy.example.com/o/x.png "})
        assert hits[0][1] == "https://legacy.example.com/o/x.png"


class TestInterestingFields:
    """Test the asset-like field name filter."""

    def test_only_asset_fields_are_reported(self, scanner):
        doc = {
            "website": "https://legacy.example.com/o/site",
            "coverImage": "https://legacy.example.com/o/cover.png",
            "BannerUrl": "https://legacy.example.com/o/banner.png",
            "notes": "data:image/png;base64,AAAA",
        }

        paths = sorted(p for p, _, _ in _collect(scanner, doc, interesting=True))

        assert paths == ["BannerUrl", "coverImage"]

    def test_parent_key_counts_through_arrays(self, scanner):
        doc = {"photos": ["https://legacy.example.com/o/1.png"], "gallery": [{"src": "https://legacy.example.com/o/2.png"}]}

        paths = sorted(p for p, _, _ in _collect(scanner, doc, interesting=True))

        assert paths == ["gallery[0].src", "photos[0]"]


class TestScanDocument:
    """Test ScanHit construction."""

    def test_hits_carry_provenance(self, scanner):
        doc = {"id": "p1", "imageUrl": "https://legacy.example.com/o/p1.png"}

        hits = scanner.scan_document("ff_products", doc)

        assert len(hits) == 1
        hit = hits[0]
        assert (hit.collection, hit.document_id, hit.field_path) == ("ff_products", "p1", "imageUrl")
        assert hit.top_field == "imageUrl"

    def test_kind_filter(self, scanner):
        doc = {
            "id": "p1",
            "a": "https://legacy.example.com/o/a.png",
            "b": "data:image/png;base64,AAAA",
            "c": f"{CANONICAL_BASE}/c.png",
        }

        hits = scanner.scan_document("x", doc, kinds={ReferenceKind.INLINE})

        assert [h.field_path for h in hits] == ["b"]

    def test_top_field_of_nested_path(self, scanner):
        doc = {"id": "l1", "images": [{"url": "https://legacy.example.com/o/a.png"}]}
        assert scanner.scan_document("em_listings", doc)[0].top_field == "images"


# =============================================================================
# Parsers
# =============================================================================

class TestParseDataUri:
    """Test inline payload decoding."""

    def test_padded_payload(self):
        parsed = parse_data_uri("data:image/png;base64,AAAA==")
        assert parsed.mime == "image/png"
        assert parsed.data == b"\x00\x00\x00"

    def test_unpadded_payload(self):
        parsed = parse_data_uri("data:image/png;base64,iVBORw0KGgoAAAA")
        assert parsed.data.startswith(b"\x89PNG")

    def test_mime_is_lowercased(self):
        assert parse_data_uri("data:IMAGE/JPEG;base64,AAAA").mime == "image/jpeg"

    @pytest.mark.parametrize("value", [
        "data:image/png,AAAA",
        "data:image/png;base64,",
        "data:image/png;base64,AA=A",
        "data:image/png;base64,A",
        "data:image/png;base64,****",
        "https://example.com/a.png",
    ])
    def test_malformed(self, value):
        with pytest.raises(ReferenceParseError):
            parse_data_uri(value)


class TestParseUrls:
    """Test object key extraction from URLs."""

    def test_legacy_download_url(self):
        url = "https://firebasestorage.googleapis.com/v0/b/app.appspot.com/o/businesses%2Fb1%2Flogo.png?alt=media&token=x"
        assert parse_legacy_object_name(url) == "businesses/b1/logo.png"

    def test_storage_googleapis_url(self):
        assert parse_legacy_object_name("https://storage.googleapis.com/bucket/a/b.png") == "a/b.png"

    def test_unrecognized_legacy_url(self):
        assert parse_legacy_object_name("https://legacy.example.com/files/a.png") is None

    def test_canonical_key_strips_query(self):
        assert parse_canonical_key(f"{CANONICAL_BASE}/a/b.png?v=2", CANONICAL_BASE) == "a/b.png"

    def test_canonical_key_requires_base(self):
        assert parse_canonical_key("https://other.example.com/a.png", CANONICAL_BASE) is None
        assert parse_canonical_key(f"{CANONICAL_BASE}/", CANONICAL_BASE) is None


# =============================================================================
# Scan Job
# =============================================================================

class TestScanReferences:
    """Test the read-only scan job."""

    def _seed(self, store):
        store.create("ff_products", {"businessId": "b1", "imageUrl": "data:image/png;base64,AAAA"}, document_id="p1")
        store.create("ff_products", {"businessId": "b1", "imageUrl": f"{CANONICAL_BASE}/x.png"}, document_id="p2")
        store.create("businesses", {
            "name": "A",
            "logo": "https://legacy.example.com/o/logo.png",
            "website": "https://legacy.example.com/o/site",
        }, document_id="b1")

    def test_inline_mode(self, store, scanner):
        self._seed(store)

        report = scan_references(store, scanner, ["ff_products", "businesses"], mode=ScanMode.INLINE)

        assert report.collections_scanned == 2
        assert report.documents_scanned == 3
        assert report.total_hits == 1
        assert report.hits_by_collection == {"ff_products": 1}
        assert report.hits_by_host == {"data:image/png": 1}
        assert report.samples[0].field_path == "imageUrl"

    def test_interesting_mode_groups_by_host(self, store, scanner):
        self._seed(store)

        report = scan_references(store, scanner, ["ff_products", "businesses"], mode="interesting")

        assert report.hits_by_collection == {"ff_products": 2, "businesses": 1}
        assert report.hits_by_host == {"data:image/png": 1, "legacy.example.com": 1, "cdn.example.com": 1}
        assert {s.kind for s in report.samples} == {"inline", "legacy", "canonical"}

    def test_unreadable_collection_is_skipped(self, store, scanner, fake_db):
        self._seed(store)
        fake_db.fail_tables.add("ff_products")

        report = scan_references(store, scanner, ["ff_products", "businesses"], mode=ScanMode.INTERESTING)

        assert report.collections_scanned == 1
        assert report.hits_by_collection == {"businesses": 1}
