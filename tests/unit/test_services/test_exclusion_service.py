"""Tests for front matter exclusion resolution"""

from unittest.mock import MagicMock

import pytest

from dupreview.models.document import Document
from dupreview.models.duplicate import DuplicateCandidate
from dupreview.models.scan import CancellationToken
from dupreview.services.exclusion_service import ExclusionResolver, flatten_targets


@pytest.fixture
def collection():
    return [
        Document(path="Plan.md"),
        Document(path="Plan 1.md"),
        Document(path="Archive/Old Plan.md"),
        Document(path="Meeting Notes.md"),
    ]


def make_resolver(collection, frontmatter):
    store = MagicMock()
    store.all_documents.return_value = collection
    store.read_frontmatter.side_effect = lambda path: frontmatter.get(path, {})
    return ExclusionResolver(store)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("[[Plan 1]]", ["Plan 1"]),
        ("[[Plan 1|the copy]]", ["Plan 1"]),
        (["[[A]]", ["B", ["[[C|alias]]"]]], ["A", "B", "C"]),
        (["A", 42, None, "  "], ["A"]),
        ({"not": "a list"}, []),
        (17, []),
        (None, []),
        ("[[]]", []),
    ],
)
def test_flatten_targets(value, expected):
    assert flatten_targets(value) == expected


def test_resolve_target_order(collection):
    resolver = make_resolver(collection, {})
    by_path = {d.path: d for d in collection}
    by_basename = {d.basename.lower(): d for d in collection}

    assert resolver.resolve_target("Archive/Old Plan.md", by_path, by_basename).path == (
        "Archive/Old Plan.md"
    )
    assert resolver.resolve_target("Archive/Old Plan", by_path, by_basename).path == (
        "Archive/Old Plan.md"
    )
    assert resolver.resolve_target("old plan", by_path, by_basename).path == (
        "Archive/Old Plan.md"
    )
    assert resolver.resolve_target("Missing", by_path, by_basename) is None


@pytest.mark.asyncio
async def test_build_exclusion_map(collection):
    resolver = make_resolver(
        collection,
        {
            "Plan.md": {"duplicate_exclude": ["[[Plan 1]]", "Missing", "[[Plan]]"]},
            "Meeting Notes.md": {"duplicate_exclude": {"bad": "shape"}},
        },
    )

    exclusion_map = await resolver.build_exclusion_map(collection)

    # Self-references and unresolvable targets are dropped
    assert exclusion_map == {"Plan.md": {"Plan 1.md"}}


@pytest.mark.asyncio
async def test_custom_exclusion_key(collection):
    store = MagicMock()
    store.all_documents.return_value = collection
    store.read_frontmatter.return_value = {"not_dupes": "Meeting Notes"}
    resolver = ExclusionResolver(store, exclusion_key="not_dupes")

    exclusion_map = await resolver.build_exclusion_map(collection[:1])
    assert exclusion_map == {"Plan.md": {"Meeting Notes.md"}}


@pytest.mark.asyncio
async def test_unreadable_metadata_means_no_exclusions(collection):
    store = MagicMock()
    store.all_documents.return_value = collection
    store.read_frontmatter.side_effect = OSError("gone")
    resolver = ExclusionResolver(store)

    assert await resolver.build_exclusion_map(collection) == {}


@pytest.mark.parametrize("declared_by", ["Plan.md", "Plan 1.md"])
def test_filter_is_bidirectional(collection, declared_by):
    plan, plan1 = collection[0], collection[1]
    other = "Plan 1.md" if declared_by == "Plan.md" else "Plan.md"
    resolver = make_resolver(collection, {})
    candidates = [
        DuplicateCandidate(file1=plan, file2=plan1, title_similarity=1.0),
        DuplicateCandidate(file1=plan, file2=collection[2], title_similarity=0.5),
    ]

    kept = resolver.filter_excluded_candidates(candidates, {declared_by: {other}})

    assert len(kept) == 1
    assert kept[0].file2.path == "Archive/Old Plan.md"


def test_filter_without_exclusions_keeps_all(collection):
    resolver = make_resolver(collection, {})
    candidates = [
        DuplicateCandidate(file1=collection[0], file2=collection[1], title_similarity=1.0)
    ]
    assert resolver.filter_excluded_candidates(candidates, {}) == candidates


@pytest.mark.asyncio
async def test_cancelled_exclusion_map_stops_reading(collection):
    token = CancellationToken()
    reads = []

    def read_frontmatter(path):
        reads.append(path)
        token.cancel("test")
        return {"duplicate_exclude": "Meeting Notes"}

    store = MagicMock()
    store.all_documents.return_value = collection
    store.read_frontmatter.side_effect = read_frontmatter
    resolver = ExclusionResolver(store)

    exclusion_map = await resolver.build_exclusion_map(collection, cancel_token=token)

    assert exclusion_map == {}
    assert reads == ["Plan.md"]
