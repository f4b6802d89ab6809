"""Unit tests for core/diff.py.

Tests for DiffEngine covering the basic reconciliation cases, change
ordering, type conflicts and unknown metadata.
"""

import pytest
from treesync.core.diff import DiffEngine, compute_changes
from treesync.models.change import (
    ChangePhase,
    ChangeSet,
    ChangeType,
    create_dir_op,
    create_file_op,
    remove_dir_op,
    remove_file_op,
    update_file_op,
    update_mode_op,
)
from treesync.models.entry import EntryKind, FileEntry, Inventory, is_nested_under

H1 = "11111111"
H2 = "22222222"


def _dir(path: str, mode: int | None = None) -> FileEntry:
    return FileEntry(path, EntryKind.DIRECTORY, mode=mode)


def _file(path: str, content_hash: str | None = H1, mode: int | None = 0o644) -> FileEntry:
    return FileEntry(path, EntryKind.FILE, content_hash=content_hash, mode=mode)


def _inventory(*entries: FileEntry, **kwargs) -> Inventory:
    return Inventory(entries, **kwargs)


class TestBasicCases:
    """Tests for the documented reconciliation examples."""

    def test_new_tree(self) -> None:
        """A directory with a file missing on the target is created parent first."""
        source = _inventory(_dir("a"), _file("a/f.txt"))

        changes = compute_changes(source, _inventory())

        assert changes == [create_dir_op("a"), create_file_op("a/f.txt", 0o644)]

    def test_changed_content(self) -> None:
        """A differing hash updates the file with the source mode."""
        source = _inventory(_file("f.txt", H1, 0o600))
        target = _inventory(_file("f.txt", H2, 0o644))

        changes = compute_changes(source, target)

        assert changes == [update_file_op("f.txt", 0o600)]

    def test_removed_file(self) -> None:
        """A file only on the target is removed."""
        changes = compute_changes(_inventory(), _inventory(_file("old.txt")))

        assert changes == [remove_file_op("old.txt")]

    def test_identical_trees(self) -> None:
        """Identical inventories produce no changes."""
        source = _inventory(_dir("a", 0o755), _file("a/f.txt"))
        target = _inventory(_dir("a", 0o755), _file("a/f.txt"))

        assert compute_changes(source, target).is_empty

    def test_mode_change_only(self) -> None:
        """Same content with different modes changes the mode only."""
        source = _inventory(_file("run.sh", H1, 0o755))
        target = _inventory(_file("run.sh", H1, 0o644))

        assert compute_changes(source, target) == [update_mode_op("run.sh", 0o755)]

    def test_directory_modes_not_diffed(self) -> None:
        """Existing directories with different modes are left alone."""
        source = _inventory(_dir("a", 0o700))
        target = _inventory(_dir("a", 0o755))

        assert compute_changes(source, target).is_empty

    def test_engine_class(self) -> None:
        """DiffEngine exposes its inventories and returns a ChangeSet."""
        source = _inventory(_file("f"))
        engine = DiffEngine(source, _inventory())

        changes = engine.compute_changes()

        assert engine.source is source
        assert isinstance(changes, ChangeSet)


class TestUnknownMetadata:
    """Tests for backends that cannot report modes or hashes."""

    @pytest.mark.parametrize(("source_mode", "target_mode"), [(None, 0o644), (0o755, None)])
    def test_unknown_mode_skips_mode_diff(
        self, source_mode: int | None, target_mode: int | None
    ) -> None:
        """No mode change is emitted when either side lacks a mode."""
        source = _inventory(_file("f", H1, source_mode))
        target = _inventory(_file("f", H1, target_mode))

        assert compute_changes(source, target).is_empty

    def test_unresolvable_hash_means_update(self) -> None:
        """A hash that cannot be determined is treated as changed."""
        source = _inventory(_file("f", None), hash_resolver=lambda _path: None)
        target = _inventory(_file("f", H1))

        assert compute_changes(source, target) == [update_file_op("f", 0o644)]

    def test_lazy_hashes_resolved(self) -> None:
        """Hashes missing from entries are resolved through the inventories."""
        source = _inventory(_file("f", None), hash_resolver=lambda _path: H1)
        target = _inventory(_file("f", None), hash_resolver=lambda _path: H1)

        assert compute_changes(source, target).is_empty

    def test_new_file_hash_never_resolved(self) -> None:
        """Files absent from the target are created without hashing."""
        calls: list[str] = []
        source = _inventory(_file("f", None), hash_resolver=lambda p: calls.append(p) or H1)

        compute_changes(source, _inventory())

        assert calls == []


class TestContentLoading:
    """Tests for content loaders attached to file writes."""

    def test_loader_reads_from_source(self) -> None:
        """Create and update changes read their content from the source reader."""
        contents = {"new.txt": b"new", "changed.txt": b"changed"}
        source = _inventory(
            _file("new.txt"), _file("changed.txt", H1), reader=contents.__getitem__
        )
        target = _inventory(_file("changed.txt", H2))

        changes = compute_changes(source, target)

        assert {op.path: op.load_content() for op in changes} == contents

    def test_no_reader_no_loader(self) -> None:
        """Without a source reader, file writes carry no loader."""
        changes = compute_changes(_inventory(_file("f")), _inventory())

        assert changes[0].content_loader is None


class TestOrdering:
    """Tests for change ordering."""

    @pytest.fixture
    def mixed_changes(self) -> ChangeSet:
        source = _inventory(
            _dir("a"),
            _dir("a/b"),
            _dir("a/b/c"),
            _file("a/b/c/deep.txt"),
            _file("a/top.txt", H1),
            _file("keep.txt", H1, 0o600),
        )
        target = _inventory(
            _dir("x"),
            _dir("x/y"),
            _file("x/y/old.txt"),
            _file("x/gone.txt"),
            _file("a_file_only_on_target.txt"),
            _file("keep.txt", H1, 0o644),
            _dir("a"),
            _file("a/top.txt", H2),
        )
        return compute_changes(source, target)

    def test_phase_order(self, mixed_changes: ChangeSet) -> None:
        """Creations, writes, file removals and directory removals follow each other."""
        types = [op.change_type for op in mixed_changes]

        assert types == [
            ChangeType.CREATE_DIR,
            ChangeType.CREATE_DIR,
            ChangeType.CREATE_FILE,
            ChangeType.UPDATE_FILE,
            ChangeType.UPDATE_MODE,
            ChangeType.REMOVE_FILE,
            ChangeType.REMOVE_FILE,
            ChangeType.REMOVE_FILE,
            ChangeType.REMOVE_DIR,
            ChangeType.REMOVE_DIR,
        ]
        assert [op.phase for op in mixed_changes] == sorted(op.phase for op in mixed_changes)

    def test_parents_created_first(self, mixed_changes: ChangeSet) -> None:
        """A created directory precedes every change below it."""
        ops = list(mixed_changes)
        for i, op in enumerate(ops):
            if op.change_type != ChangeType.CREATE_DIR:
                continue
            for earlier in ops[:i]:
                assert not is_nested_under(earlier.path, op.path)

    def test_children_removed_first(self, mixed_changes: ChangeSet) -> None:
        """A removed directory follows every change below it."""
        ops = list(mixed_changes)
        for i, op in enumerate(ops):
            if op.change_type != ChangeType.REMOVE_DIR:
                continue
            for later in ops[i + 1 :]:
                assert not is_nested_under(later.path, op.path)

    def test_remove_dirs_deepest_first(self, mixed_changes: ChangeSet) -> None:
        """Directory removals run from the deepest level up."""
        removals = [op.path for op in mixed_changes if op.change_type == ChangeType.REMOVE_DIR]
        assert removals == ["x/y", "x"]

    def test_writes_in_path_order(self, mixed_changes: ChangeSet) -> None:
        """File writes are sorted by path."""
        writes = [op.path for op in mixed_changes if op.phase == ChangePhase.WRITE_FILES]
        assert writes == sorted(writes)


class TestCompleteness:
    """Tests that every difference is covered exactly once."""

    def test_every_path_accounted_for(self) -> None:
        """Paths only in the source are created, paths only in the target removed."""
        source = _inventory(_dir("d"), _file("d/1"), _file("both"), _file("s_only"))
        target = _inventory(_dir("t"), _file("t/2"), _file("both"), _file("t_only"))

        changes = compute_changes(source, target)
        created = [op.path for op in changes if op.is_create]
        removed = [op.path for op in changes if op.is_remove]

        assert sorted(created) == sorted(set(source) - set(target))
        assert sorted(removed) == sorted(set(target) - set(source))
        assert "both" not in {op.path for op in changes}


class TestTypeConflicts:
    """Tests for paths whose type differs between source and target."""

    def test_file_replaced_by_directory(self) -> None:
        """A target file is removed before the directory is created."""
        source = _inventory(_dir("p"), _file("p/inner.txt"))
        target = _inventory(_file("p"))

        changes = compute_changes(source, target)

        assert changes == [
            remove_file_op("p", conflict=True),
            create_dir_op("p"),
            create_file_op("p/inner.txt", 0o644),
        ]
        assert changes[0].phase == ChangePhase.CONFLICT

    def test_directory_replaced_by_file(self) -> None:
        """A target directory is removed before the file is written."""
        source = _inventory(_file("p"))
        target = _inventory(_dir("p"), _dir("p/sub"), _file("p/sub/x.txt"))

        changes = compute_changes(source, target)

        assert changes == [
            remove_dir_op("p", conflict=True),
            create_file_op("p", 0o644),
            remove_file_op("p/sub/x.txt"),
            remove_dir_op("p/sub"),
        ]

    def test_at_most_one_create_and_remove_per_path(self) -> None:
        """A conflicting path gets one removal and one creation."""
        source = _inventory(_file("p"))
        target = _inventory(_dir("p"))

        changes = compute_changes(source, target)
        on_path = [op for op in changes if op.path == "p"]

        assert sum(1 for op in on_path if op.is_create) == 1
        assert sum(1 for op in on_path if op.is_remove) == 1
