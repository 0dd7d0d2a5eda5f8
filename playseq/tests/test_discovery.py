"""Tests for phase discovery and phase order validation."""

from pathlib import Path

import pytest

from playseq.core.discovery import (
    ValidationPolicy,
    discover_phases,
    is_strictly_equal,
    is_subset,
    parse_phase_order,
    split_comma_list,
    validate_phase_order,
)
from playseq.core.exceptions import PathNotFoundError, PhaseMismatchError


class TestSplitCommaList:
    """Test parsing comma-separated declarations."""

    def test_splits_and_trims(self):
        assert split_comma_list("a, b ,c, d ") == ["a", "b", "c", "d"]

    def test_empty_string(self):
        assert split_comma_list("") == []
        assert split_comma_list(None) == []

    def test_single_item(self):
        assert split_comma_list("item1") == ["item1"]

    def test_keeps_duplicates(self):
        assert parse_phase_order("setup, run, run") == ["setup", "run", "run"]

    def test_no_surrounding_whitespace(self):
        for item in split_comma_list("  a ,\tb\t,   c  "):
            assert item == item.strip()


class TestDiscoverPhases:
    """Test listing phase directories."""

    def test_lists_directories_only(self, ansible_dir: Path):
        assert discover_phases(ansible_dir / "playbooks") == {"setup", "run"}

    def test_excludes_named_directories(self, ansible_dir: Path):
        (ansible_dir / "playbooks" / "x").mkdir()
        (ansible_dir / "playbooks" / "roles").mkdir()

        phases = discover_phases(ansible_dir / "playbooks", exclude="x, roles")

        assert "x" not in phases
        assert phases == {"setup", "run"}

    def test_exclude_accepts_iterable(self, ansible_dir: Path):
        assert discover_phases(ansible_dir / "playbooks", exclude=["run"]) == {"setup"}

    def test_empty_directory(self, tmp_path: Path):
        assert discover_phases(tmp_path) == set()

    def test_symlinked_directory_skipped(self, ansible_dir: Path, tmp_path: Path):
        target = tmp_path / "shared"
        target.mkdir()
        (ansible_dir / "playbooks" / "linked").symlink_to(target, target_is_directory=True)

        assert discover_phases(ansible_dir / "playbooks") == {"setup", "run"}

    def test_does_not_recurse(self, ansible_dir: Path):
        (ansible_dir / "playbooks" / "setup" / "nested").mkdir()
        assert "nested" not in discover_phases(ansible_dir / "playbooks")

    def test_missing_root(self, tmp_path: Path):
        with pytest.raises(PathNotFoundError, match="not found"):
            discover_phases(tmp_path / "missing")

    def test_root_is_a_file(self, tmp_path: Path):
        file_path = tmp_path / "file.txt"
        file_path.write_text("x")

        with pytest.raises(PathNotFoundError, match="not a directory"):
            discover_phases(file_path)


class TestStrictPolicy:
    """Test the strict equality policy."""

    def test_same_set_any_order(self):
        assert is_strictly_equal(["a", "b"], ["b", "a"]) is True

    def test_extra_directory(self):
        assert is_strictly_equal(["a", "b"], ["a", "b", "c"]) is False

    def test_both_empty(self):
        assert is_strictly_equal([], []) is True

    def test_duplicates_in_order_are_admissible(self):
        assert is_strictly_equal(["a", "b", "a"], ["a", "b"]) is True

    def test_validate_raises_with_details(self):
        with pytest.raises(PhaseMismatchError) as exc_info:
            validate_phase_order(["setup", "deploy"], {"setup", "run"})

        assert exc_info.value.missing == ["deploy"]
        assert exc_info.value.undeclared == ["run"]
        assert "does not match" in str(exc_info.value)

    def test_validate_passes(self):
        validate_phase_order(["run", "setup"], {"setup", "run"})

    def test_case_sensitive(self):
        with pytest.raises(PhaseMismatchError):
            validate_phase_order(["Setup"], {"setup"})


class TestSubsetPolicy:
    """Test the subset sufficiency policy."""

    def test_undeclared_directories_allowed(self):
        assert is_subset(["a"], ["a", "b"]) is True
        validate_phase_order(["a"], {"a", "b"}, ValidationPolicy.SUBSET)

    def test_missing_directory_rejected(self):
        assert is_subset(["a", "z"], ["a", "b"]) is False

        with pytest.raises(PhaseMismatchError) as exc_info:
            validate_phase_order(["a", "z"], {"a", "b"}, policy="subset")

        assert exc_info.value.missing == ["z"]
        assert exc_info.value.undeclared == []

    def test_empty_order(self):
        validate_phase_order([], {"a"}, ValidationPolicy.SUBSET)

        with pytest.raises(PhaseMismatchError):
            validate_phase_order([], {"a"}, ValidationPolicy.STRICT)
