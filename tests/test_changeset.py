"""Tests for change-set classification."""

from __future__ import annotations

import re

from flowcov.analyzers.changeset import classify, compile_pattern, filter_files
from flowcov.models.coverage import FileChange


def _files(*pairs: tuple[str, str]) -> list[FileChange]:
    return [FileChange(filename=name, status=status) for name, status in pairs]


class TestFilterFiles:
    def test_keeps_matching_names(self) -> None:
        files = _files(("src/a.js", "modified"), ("README.md", "modified"))
        assert [f.filename for f in filter_files(files, r"\.js$")] == ["src/a.js"]

    def test_pattern_is_case_insensitive(self) -> None:
        files = _files(("src/App.JS", "added"))
        assert filter_files(files, r"\.js$") == files

    def test_pattern_matches_anywhere_in_name(self) -> None:
        files = _files(("packages/web/src/a.js", "modified"), ("lib/b.js", "modified"))
        assert [f.filename for f in filter_files(files, "web/")] == ["packages/web/src/a.js"]

    def test_empty_pattern_matches_everything(self) -> None:
        files = _files(("a.js", "modified"), ("b.py", "removed"))
        assert filter_files(files, "") == files

    def test_accepts_precompiled_pattern(self) -> None:
        regex = re.compile(r"\.jsx$")
        assert compile_pattern(regex) is regex
        assert filter_files(_files(("a.jsx", "added")), regex)[0].filename == "a.jsx"


class TestClassify:
    def test_partitions_by_status(self) -> None:
        files = _files(
            ("a.js", "modified"),
            ("b.js", "added"),
            ("c.js", "removed"),
            ("d.js", "renamed"),
        )

        change_set = classify(files, r"\.js$")

        assert change_set.modified == ["a.js"]
        assert change_set.added == ["b.js"]
        assert change_set.others == [("c.js", "removed"), ("d.js", "renamed")]

    def test_status_match_is_exact(self) -> None:
        change_set = classify(_files(("a.js", "Modified"), ("b.js", "added ")), r"\.js$")

        assert change_set.modified == []
        assert change_set.added == []
        assert change_set.others == [("a.js", "Modified"), ("b.js", "added ")]

    def test_non_matching_files_excluded_everywhere(self) -> None:
        change_set = classify(_files(("a.js", "modified"), ("a.css", "modified")), r"\.js$")

        assert [f.filename for f in change_set.files] == ["a.js"]
        assert "a.css" not in change_set.modified

    def test_empty_result(self) -> None:
        change_set = classify(_files(("a.css", "modified")), r"\.js$")

        assert change_set.is_empty
        assert change_set.modified == []
        assert change_set.added == []
        assert change_set.others == []

    def test_preserves_pr_order(self) -> None:
        files = _files(("z.js", "modified"), ("a.js", "modified"), ("m.js", "modified"))
        assert classify(files, "").modified == ["z.js", "a.js", "m.js"]

    def test_labelled_yields_non_modified_in_pr_order(self) -> None:
        files = _files(
            ("x.js", "removed"),
            ("a.js", "modified"),
            ("b.js", "added"),
            ("y.js", "renamed"),
        )

        change_set = classify(files, "")

        assert list(change_set.labelled()) == [
            ("x.js", "removed"),
            ("b.js", "added"),
            ("y.js", "renamed"),
        ]
