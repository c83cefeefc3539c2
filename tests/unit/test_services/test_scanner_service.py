"""Tests for the duplicate scanner pipeline"""

from unittest.mock import MagicMock

import pytest

from dupreview.models.config import ReviewerSettings
from dupreview.models.document import Document
from dupreview.models.duplicate import DuplicateCandidate
from dupreview.models.scan import CancellationToken, ScanStage
from dupreview.services.exclusion_service import ExclusionResolver
from dupreview.services.scanner_service import (
    DuplicateScanner,
    find_by_pattern,
    group_duplicates,
)


@pytest.fixture
def store():
    """Document store with no front matter anywhere"""
    mock_store = MagicMock()
    mock_store.all_documents.return_value = []
    mock_store.read_frontmatter.return_value = {}
    return mock_store


@pytest.fixture
def scanner(store):
    return DuplicateScanner(store)


def docs(*paths):
    return [Document(path=p, modified_at=i) for i, p in enumerate(paths)]


@pytest.mark.asyncio
async def test_find_title_duplicates_basic(scanner):
    files = docs("Notes.md", "Notes 1.md", "Untitled.md")
    candidates = await scanner.find_title_duplicates(files, 0.8)

    assert len(candidates) == 1
    assert candidates[0].file1.path == "Notes.md"
    assert candidates[0].file2.path == "Notes 1.md"
    assert candidates[0].title_similarity == 1.0


@pytest.mark.asyncio
async def test_earlier_file_is_file1_and_pairs_unique(scanner):
    files = docs("Plan A.md", "Plan.md", "Plan B.md", "Plan 2.md")
    candidates = await scanner.find_title_duplicates(files, 0.5)

    index = {f.path: i for i, f in enumerate(files)}
    keys = [c.pair_key for c in candidates]
    assert len(keys) == len(set(keys))
    for c in candidates:
        assert index[c.file1.path] < index[c.file2.path]
        assert c.title_similarity >= 0.5


@pytest.mark.asyncio
async def test_candidates_sorted_by_title_similarity(scanner):
    files = docs("Project Plan Draft.md", "Project Plan.md", "project plan.md")
    candidates = await scanner.find_title_duplicates(files, 0.5)

    scores = [c.title_similarity for c in candidates]
    assert scores == sorted(scores, reverse=True)
    assert scores[0] == 1.0


@pytest.mark.asyncio
async def test_empty_titles_never_pair(scanner):
    files = docs("!!!.md", "???.md")
    assert await scanner.find_title_duplicates(files, 0.0) == []


@pytest.mark.asyncio
async def test_threshold_is_inclusive(scanner):
    files = docs("alpha beta.md", "alpha gamma.md")
    candidates = await scanner.find_title_duplicates(files, 1 / 3)
    assert len(candidates) == 1


@pytest.mark.asyncio
async def test_title_progress_reported_per_file(scanner):
    events = []
    files = docs("a.md", "b.md", "c.md")
    await scanner.find_title_duplicates(files, 0.8, on_progress=events.append)

    assert [(e.stage, e.current, e.total) for e in events] == [
        (ScanStage.COMPARING, 1, 3),
        (ScanStage.COMPARING, 2, 3),
        (ScanStage.COMPARING, 3, 3),
    ]


@pytest.mark.asyncio
async def test_progress_callback_errors_are_ignored(scanner):
    def broken(progress):
        raise ValueError("display gone")

    files = docs("Notes.md", "Notes 1.md")
    candidates = await scanner.find_title_duplicates(files, 0.8, on_progress=broken)
    assert len(candidates) == 1


@pytest.mark.asyncio
async def test_cancelled_title_scan_returns_empty(scanner):
    token = CancellationToken()
    files = docs("Notes.md", "Notes 1.md", "Notes 2.md")

    def cancel_after_first(progress):
        token.cancel("test")

    result = await scanner.find_title_duplicates(
        files, 0.8, cancel_token=token, on_progress=cancel_after_first
    )
    assert result == []


@pytest.mark.asyncio
async def test_refine_with_content(scanner, make_documents):
    documents = make_documents(
        {
            "Notes.md": "---\na: 1\n---\nsame body here",
            "Notes 1.md": "same body here",
            "Notes 2.md": "entirely different words",
        }
    )
    n, n1, n2 = documents.values()
    candidates = [
        DuplicateCandidate(file1=n, file2=n2, title_similarity=1.0),
        DuplicateCandidate(file1=n, file2=n1, title_similarity=1.0),
    ]

    refined = await scanner.refine_with_content(candidates, 0.6)

    assert refined[0].file2.path == "Notes 1.md"
    assert refined[0].content_similarity == 1.0
    assert refined[0].likely_duplicate is True
    assert refined[1].content_similarity == 0.0
    assert refined[1].likely_duplicate is False


@pytest.mark.asyncio
async def test_refine_read_failure_degrades(scanner, make_documents):
    documents = make_documents({"a.md": "x", "a 1.md": "x"}, failing=("a 1.md",))
    a, a1 = documents.values()
    candidates = [DuplicateCandidate(file1=a, file2=a1, title_similarity=1.0)]

    refined = await scanner.refine_with_content(candidates, 0.6)

    assert len(refined) == 1
    assert refined[0].content_similarity is None
    assert refined[0].likely_duplicate is False


@pytest.mark.asyncio
async def test_refine_reports_progress(scanner, make_documents):
    documents = make_documents({"a.md": "x", "a 1.md": "x"})
    a, a1 = documents.values()
    events = []
    await scanner.refine_with_content(
        [DuplicateCandidate(file1=a, file2=a1, title_similarity=1.0)],
        0.6,
        on_progress=events.append,
    )
    assert [(e.stage, e.current, e.total) for e in events] == [(ScanStage.REFINING, 1, 1)]


def test_group_duplicates_keys_on_first_file():
    a, a1, a2, b, b1 = docs("A.md", "A 1.md", "A 2.md", "B.md", "B copy.md")
    candidates = [
        DuplicateCandidate(file1=b, file2=b1, title_similarity=0.5),
        DuplicateCandidate(file1=a, file2=a1, title_similarity=1.0),
        DuplicateCandidate(file1=a, file2=a2, title_similarity=1.0),
    ]

    groups = group_duplicates(candidates)

    assert [g.normalized_title for g in groups] == ["a", "b"]
    assert groups[0].paths == ["A.md", "A 1.md", "A 2.md"]
    assert groups[1].original_titles == {"B", "B copy"}
    for group in groups:
        assert len(group.paths) == len(set(group.paths)) >= 2


def test_find_by_pattern_is_case_insensitive():
    files = docs("Untitled.md", "untitled 2.md", "Daily/Meeting.md", "Notes.md")
    assert [f.path for f in find_by_pattern(files, ["UNTITLED"])] == [
        "Untitled.md",
        "untitled 2.md",
    ]
    assert find_by_pattern(files, [""]) == []


@pytest.mark.asyncio
async def test_scan_documents_end_to_end(scanner):
    events = []
    files = docs("Notes.md", "Notes 1.md", "Untitled.md")
    groups = await scanner.scan_documents(
        files, ReviewerSettings(), on_progress=events.append
    )

    assert len(groups) == 1
    assert groups[0].normalized_title == "notes"
    assert set(groups[0].paths) == {"Notes.md", "Notes 1.md"}

    stages = [e.stage for e in events]
    assert stages[0] == ScanStage.COLLECTING
    assert ScanStage.FILTERING in stages
    assert ScanStage.REFINING not in stages
    assert stages[-2:] == [ScanStage.GROUPING, ScanStage.DONE]


@pytest.mark.asyncio
async def test_scan_documents_with_fewer_than_two_files(scanner):
    assert await scanner.scan_documents(docs("Only.md"), ReviewerSettings()) == []


@pytest.mark.asyncio
async def test_scan_documents_precancelled(scanner):
    token = CancellationToken()
    token.cancel()
    groups = await scanner.scan_documents(
        docs("Notes.md", "Notes 1.md"), ReviewerSettings(), cancel_token=token
    )
    assert groups == []


@pytest.mark.asyncio
async def test_scan_documents_applies_exclusions(store):
    a, a1 = docs("Notes.md", "Notes 1.md")
    store.all_documents.return_value = [a, a1]
    store.read_frontmatter.side_effect = lambda path: (
        {"duplicate_exclude": "[[Notes 1]]"} if path == "Notes.md" else {}
    )
    scanner = DuplicateScanner(store, ExclusionResolver(store))

    groups = await scanner.scan_documents([a, a1], ReviewerSettings())
    assert groups == []


@pytest.mark.asyncio
async def test_scan_documents_refines_when_requested(scanner, make_documents):
    documents = make_documents({"Notes.md": "same", "Notes 1.md": "same"})
    events = []
    groups = await scanner.scan_documents(
        list(documents.values()),
        ReviewerSettings(),
        refine=True,
        on_progress=events.append,
    )

    assert len(groups) == 1
    assert groups[0].candidates[0].likely_duplicate is True
    assert ScanStage.REFINING in [e.stage for e in events]


@pytest.mark.asyncio
async def test_scan_for_duplicates_collects_scope(store):
    store.list_documents.return_value = docs("Notes.md", "Notes 1.md")
    scanner = DuplicateScanner(store)
    settings = ReviewerSettings()

    groups = await scanner.scan_for_duplicates("Projects", settings)

    store.list_documents.assert_called_once_with("Projects", settings.ignored_folders)
    assert len(groups) == 1


def test_group_duplicates_many_same_titled_documents():
    files = docs(*[f"F{i}/index.md" for i in range(300)])
    candidates = [
        DuplicateCandidate(file1=files[j], file2=files[i], title_similarity=1.0)
        for i in range(len(files))
        for j in range(i)
    ]

    groups = group_duplicates(candidates)

    assert len(groups) == 1
    assert groups[0].file_count == 300
    assert groups[0].paths == [f.path for f in files]
    assert len(groups[0].candidates) == 300 * 299 // 2


@pytest.mark.asyncio
async def test_cancelled_refinement_returns_empty(scanner, make_documents):
    documents = make_documents({"a.md": "x", "a 1.md": "x", "a 2.md": "y"})
    a, a1, a2 = documents.values()
    candidates = [
        DuplicateCandidate(file1=a, file2=a1, title_similarity=1.0),
        DuplicateCandidate(file1=a, file2=a2, title_similarity=1.0),
    ]
    token = CancellationToken()
    events = []

    def cancel_after_first(progress):
        events.append(progress)
        if progress.stage == ScanStage.REFINING:
            token.cancel("test")

    refined = await scanner.refine_with_content(
        candidates, 0.6, cancel_token=token, on_progress=cancel_after_first
    )

    assert refined == []
    assert [(e.stage, e.current) for e in events] == [(ScanStage.REFINING, 1)]


@pytest.mark.asyncio
async def test_cancelled_exclusion_stage_returns_empty(store):
    a, a1 = docs("Notes.md", "Notes 1.md")
    store.all_documents.return_value = [a, a1]
    token = CancellationToken()

    def read_and_cancel(path):
        token.cancel("test")
        return {}

    store.read_frontmatter.side_effect = read_and_cancel
    scanner = DuplicateScanner(store)

    groups = await scanner.scan_documents(
        [a, a1], ReviewerSettings(), cancel_token=token
    )
    assert groups == []
