"""Unit tests for the scan result cache"""

import os
import shutil
import tempfile
from pathlib import Path

import pytest

from dupreview.models.cache import CacheEntry, SimilarityFingerprint
from dupreview.models.config import ReviewerSettings
from dupreview.models.duplicate import DuplicateCandidate, DuplicateGroup
from dupreview.services.cache_service import DuplicateCacheService
from dupreview.services.document_store import FilesystemDocumentStore
from dupreview.services.state_store import CACHE_SECTION, StateStore


@pytest.fixture
def state_store():
    temp_dir = Path(tempfile.mkdtemp())
    store = StateStore(temp_dir)
    yield store
    store.close()
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def vault(temp_vault, write_note):
    write_note("Notes.md", "a")
    write_note("Notes 1.md", "b")
    write_note("Projects/Plan.md", "c")
    write_note("Projects/EAD0001 Plan.md", "d")
    return FilesystemDocumentStore(temp_vault)


@pytest.fixture
def cache_service(state_store, vault):
    service = DuplicateCacheService(state_store, vault)
    service.load()
    return service


@pytest.fixture
def settings():
    return ReviewerSettings()


def groups_for(files):
    group = DuplicateGroup(normalized_title="notes")
    group.add_candidate(
        DuplicateCandidate(file1=files[0], file2=files[1], title_similarity=1.0)
    )
    return [group]


def root_files(vault):
    return vault.list_documents("/")


def test_miss_on_empty_cache(cache_service, vault, settings):
    assert cache_service.get("/", root_files(vault), settings) is None
    assert cache_service.size == 0
    assert cache_service.last_built is None
    assert cache_service.most_recent_scope() is None


def test_put_then_get(cache_service, vault, settings):
    files = root_files(vault)
    cache_service.put("/", files, groups_for(files), settings)

    groups = cache_service.get("/", files, settings)

    assert groups is not None
    assert groups[0].normalized_title == "notes"
    assert groups[0].paths == [files[0].path, files[1].path]
    assert groups[0].candidates == []


def test_round_trip_through_persistence(cache_service, state_store, vault, settings):
    files = root_files(vault)
    cache_service.put("/", files, groups_for(files), settings)
    cache_service.save()

    reloaded = DuplicateCacheService(state_store, vault)
    reloaded.load()

    assert reloaded.size == 1
    assert reloaded.get("/", files, settings) is not None
    entry = reloaded.get_entry("/")
    assert entry.file_count == len(files)
    assert entry.max_mtime == max(f.modified_at for f in files)


def test_save_preserves_other_sections(cache_service, state_store, vault, settings):
    state_store.update("dismissed_groups", [["a.md", "b.md"]])
    files = root_files(vault)
    cache_service.put("/", files, [], settings)
    cache_service.save()

    assert state_store.load_section("dismissed_groups") == [["a.md", "b.md"]]


@pytest.mark.parametrize(
    "change",
    [
        {"title_similarity_threshold": 0.7},
        {"enable_content_similarity": True},
        {"content_similarity_threshold": 0.5},
        {"content_chars_to_analyze": 200},
    ],
)
def test_settings_change_invalidates(cache_service, vault, settings, change):
    files = root_files(vault)
    cache_service.put("/", files, groups_for(files), settings)

    assert cache_service.get("/", files, settings.model_copy(update=change)) is None
    # Stale entries are evicted
    assert cache_service.get_entry("/") is None


def test_unrelated_setting_keeps_entry(cache_service, vault, settings):
    files = root_files(vault)
    cache_service.put("/", files, groups_for(files), settings)

    changed = settings.model_copy(update={"max_comparison_panes": 4})
    assert cache_service.get("/", files, changed) is not None


def test_file_count_change_invalidates(cache_service, vault, settings, write_note):
    files = root_files(vault)
    cache_service.put("/", files, groups_for(files), settings)

    write_note("New.md", "new")
    assert cache_service.get("/", root_files(vault), settings) is None


def test_mtime_change_invalidates(cache_service, vault, settings, temp_vault):
    files = root_files(vault)
    cache_service.put("/", files, groups_for(files), settings)

    newest = max(f.modified_at for f in files)
    later = (newest + 60_000) / 1000
    os.utime(temp_vault / "Notes.md", (later, later))

    assert cache_service.get("/", root_files(vault), settings) is None


def test_dirty_path_in_subtree(cache_service, vault, settings):
    files = vault.list_documents("Projects")
    cache_service.put("Projects", files, groups_for(files), settings)

    cache_service.mark_dirty("ProjectsArchive/x.md")
    assert cache_service.get("Projects", files, settings) is not None

    cache_service.mark_dirty("Projects/Plan.md")
    assert cache_service.get("Projects", files, settings) is None


def test_root_scope_invalidated_by_any_dirty_path(cache_service, vault, settings):
    files = root_files(vault)
    cache_service.put("/", files, groups_for(files), settings)

    cache_service.mark_dirty("Elsewhere/x.md")
    assert cache_service.get("/", files, settings) is None


def test_clear_dirty_paths_for_scope(cache_service):
    cache_service.mark_dirty("Projects/a.md", "Other/b.md")

    cache_service.clear_dirty_paths_for_scope("Projects")
    assert cache_service.dirty_paths == {"Other/b.md"}

    cache_service.clear_dirty_paths_for_scope("/")
    assert cache_service.dirty_paths == set()


def test_deleted_member_drops_undersized_group(cache_service, vault, settings, temp_vault):
    files = root_files(vault)
    entry = cache_service.put("/", files, groups_for(files), settings)

    (temp_vault / "Notes 1.md").unlink()

    assert cache_service.reconstitute(entry) == []


def test_corrupt_entries_are_skipped(state_store, vault, settings):
    fingerprint = SimilarityFingerprint.from_settings(settings)
    good = CacheEntry(
        scope="/", scan_timestamp=1, file_count=0, max_mtime=0, settings=fingerprint
    )
    state_store.update(
        CACHE_SECTION,
        {"/": good.model_dump(mode="json"), "Broken": {"scope": "Broken"}},
    )

    service = DuplicateCacheService(state_store, vault)
    service.load()

    assert list(service.entries()) == ["/"]


def test_corrupt_section_means_empty_cache(state_store, vault):
    state_store.update(CACHE_SECTION, ["not", "a", "mapping"])
    service = DuplicateCacheService(state_store, vault)
    service.load()
    assert service.size == 0


def test_most_recent_scope(cache_service, vault, settings):
    cache_service.put("Projects", vault.list_documents("Projects"), [], settings)
    cache_service.put("/", root_files(vault), [], settings)
    cache_service.get_entry("Projects").scan_timestamp = 10**13

    assert cache_service.most_recent_scope() == "Projects"
    stats = cache_service.get_stats()
    assert stats.entry_count == 2
    assert stats.scopes == ["/", "Projects"]
    assert stats.last_built is not None


def test_clear(cache_service, vault, settings):
    cache_service.put("/", root_files(vault), [], settings)
    cache_service.mark_dirty("a.md")

    cache_service.clear()

    assert cache_service.size == 0
    assert cache_service.dirty_paths == set()
