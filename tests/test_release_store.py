"""Tests for release_deploy.core.release_store."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator
from unittest.mock import patch

import pytest

from release_deploy.api.exceptions import ReleaseNotFoundError, SwitchFailure
from release_deploy.core.release_store import ReleaseStore

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _counter_clock(start: int = 20250101000000000000) -> Iterator[str]:
    value = start
    while True:
        yield str(value)
        value += 1000


def _make_store(tmp_path: Path, clock=None) -> ReleaseStore:
    ids = _counter_clock()
    return ReleaseStore(tmp_path / "api", clock=clock or (lambda: next(ids)))


def _deploy(store: ReleaseStore):
    """Create a release and make it current, like a successful deploy."""
    release = store.create_release()
    (release.path / "marker").write_text(release.id, encoding="utf-8")
    store.set_current(release)
    return release


# ---------------------------------------------------------------------------
# Creation and listing
# ---------------------------------------------------------------------------


class TestCreateAndList:
    """Tests for create_release() and list_releases()."""

    def test_empty_store(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        assert store.list_releases() == []
        assert store.get_current() is None

    def test_create_release_makes_directory(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        release = store.create_release()

        assert release.path == tmp_path / "api" / "releases" / release.id
        assert release.path.is_dir()
        assert list(release.path.iterdir()) == []

    def test_list_is_newest_first(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        created = [store.create_release().id for _ in range(4)]

        assert [r.id for r in store.list_releases()] == list(reversed(created))

    def test_ids_unique_when_clock_repeats(self, tmp_path: Path) -> None:
        store = ReleaseStore(tmp_path / "api", clock=lambda: "20250101000000000000")
        ids = [store.create_release().id for _ in range(3)]

        assert len(set(ids)) == 3
        assert ids == sorted(ids)
        assert all(len(i) == 20 for i in ids)

    def test_ids_increase_when_clock_goes_backwards(self, tmp_path: Path) -> None:
        values = iter(["20250101000000000500", "20250101000000000100"])
        store = ReleaseStore(tmp_path / "api", clock=lambda: next(values))

        first = store.create_release()
        second = store.create_release()

        assert second.id > first.id

    def test_default_clock_produces_timestamp_ids(self, tmp_path: Path) -> None:
        store = ReleaseStore(tmp_path / "api")
        release = store.create_release()

        assert release.id.isdigit() and len(release.id) == 20
        assert release.created_at is not None

    def test_hidden_and_stray_entries_ignored(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        release = store.create_release()
        (store.releases_dir / ".tmp").mkdir()
        (store.releases_dir / "notes.txt").write_text("x", encoding="utf-8")
        os.symlink(release.path, store.releases_dir / "alias")

        assert [r.id for r in store.list_releases()] == [release.id]

    def test_get_release_unknown(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        store.ensure_layout()
        with pytest.raises(ReleaseNotFoundError):
            store.get_release("20990101000000000000")


# ---------------------------------------------------------------------------
# Current pointer
# ---------------------------------------------------------------------------


class TestCurrentPointer:
    """Tests for set_current() and get_current()."""

    def test_current_follows_each_deploy(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        for _ in range(5):
            release = _deploy(store)
            assert store.get_current() == release

    def test_link_is_relative(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        release = _deploy(store)

        assert os.readlink(store.current_link) == os.path.join("releases", release.id)
        assert (store.current_link / "marker").read_text(encoding="utf-8") == release.id

    def test_switch_replaces_link_without_temp_leftovers(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        _deploy(store)
        second = _deploy(store)

        assert store.get_current() == second
        leftovers = [p.name for p in store.app_root.iterdir() if p.name.startswith(".current")]
        assert leftovers == []

    def test_set_current_missing_release(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        first = _deploy(store)

        with pytest.raises(SwitchFailure):
            store.set_current(store.release("20990101000000000000"))

        assert store.get_current() == first

    def test_set_current_os_error_keeps_old_link(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        first = _deploy(store)
        second = store.create_release()

        with patch("release_deploy.utils.file_utils.os.replace", side_effect=OSError("EXDEV")):
            with pytest.raises(SwitchFailure) as exc_info:
                store.set_current(second)

        assert "EXDEV" in str(exc_info.value)
        assert store.get_current() == first

    def test_dangling_current_still_reported(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        release = _deploy(store)
        (release.path / "marker").unlink()
        release.path.rmdir()

        current = store.get_current()
        assert current is not None
        assert current.id == release.id
        assert not current.exists

    def test_previous_release(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        first = _deploy(store)
        second = _deploy(store)

        assert store.previous_release(second) == first
        assert store.previous_release(first) is None


# ---------------------------------------------------------------------------
# Retention
# ---------------------------------------------------------------------------


class TestPrune:
    """Tests for prune()."""

    def test_keep_three_after_ten_deploys(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        deployed = [_deploy(store) for _ in range(10)]

        result = store.prune(3)

        remaining = [r.id for r in store.list_releases()]
        assert len(remaining) == 4
        assert remaining == [r.id for r in reversed(deployed[-4:])]
        assert store.get_current() == deployed[-1]
        assert len(result.removed) == 6
        assert result.success

    def test_current_never_pruned_even_when_oldest(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        oldest = _deploy(store)
        for _ in range(6):
            store.create_release()
        store.set_current(oldest)

        store.prune(2)

        remaining = [r.id for r in store.list_releases()]
        assert oldest.id in remaining
        assert oldest.path.is_dir()
        # current plus the two newest
        assert len(remaining) == 3

    def test_rollback_target_kept_outside_window(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        releases = [store.create_release() for _ in range(6)]
        # Live release in the middle, newer ones staged but not current
        store.set_current(releases[2])

        result = store.prune(1)

        remaining = {r.id for r in store.list_releases()}
        assert remaining == {releases[5].id, releases[2].id, releases[1].id}
        assert set(result.removed) == {releases[4].id, releases[3].id, releases[0].id}

    def test_prune_without_current(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        for _ in range(4):
            store.create_release()

        store.prune(2)

        assert len(store.list_releases()) == 2

    def test_removal_failure_is_recorded_and_skipped(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        deployed = [_deploy(store) for _ in range(5)]

        def fake_safe_remove(path: Path) -> bool:
            return path.name != deployed[0].id

        with patch("release_deploy.core.release_store.safe_remove", side_effect=fake_safe_remove):
            result = store.prune(1)

        assert deployed[0].id in result.failed
        assert set(result.removed) == {deployed[1].id, deployed[2].id}
        assert not result.success

    def test_negative_keep_rejected(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path)
        with pytest.raises(ValueError):
            store.prune(-1)
