"""Tests for parsing `git worktree list --porcelain` output"""
from unittest.mock import patch

import pytest

from git_worktree_manager.services.git.porcelain import MainDetectionPolicy, parse_worktree_list

CLASSIFIER = "git_worktree_manager.services.git.porcelain.is_main_worktree"

SAMPLE = """worktree /work/project
HEAD 1111111111111111111111111111111111111111
branch refs/heads/main

worktree /work/project-feature
HEAD 2222222222222222222222222222222222222222
branch refs/heads/feature/x
locked on removable drive

worktree /work/project-detached
HEAD 3333333333333333333333333333333333333333
detached
prunable gitdir file points to non-existent location
"""


def _main_paths(*paths):
    """Classifier stub treating only the given paths as main."""
    def classify(path, is_bare=False, default_if_unknown=False):
        return not is_bare and str(path) in paths
    return classify


class TestParseRecords:
    """Test field extraction."""

    def test_parses_all_fields(self):
        """Test that every record and attribute is read."""
        with patch(CLASSIFIER, side_effect=_main_paths("/work/project")):
            records = parse_worktree_list(SAMPLE)

        assert [r.path for r in records] == [
            "/work/project", "/work/project-feature", "/work/project-detached"
        ]
        main, feature, detached = records
        assert main.branch == "refs/heads/main"
        assert main.commit == "1" * 40
        assert main.is_main is True
        assert feature.is_locked is True
        assert feature.lock_reason == "on removable drive"
        assert feature.is_main is False
        assert detached.branch is None
        assert detached.display_name == "3333333"
        assert detached.is_prunable is True
        assert detached.prune_reason == "gitdir file points to non-existent location"

    def test_flags_without_reason(self):
        """Test that bare locked/prunable lines set the flag without a reason."""
        output = "worktree /w\nHEAD abc\nbranch refs/heads/x\nlocked\nprunable\n"
        with patch(CLASSIFIER, return_value=True):
            (record,) = parse_worktree_list(output)
        assert record.is_locked and record.lock_reason is None
        assert record.is_prunable and record.prune_reason is None

    def test_trailing_record_without_blank_line(self):
        """Test that the last record is emitted without a final blank line."""
        output = "worktree /a\nHEAD abc\nbranch refs/heads/main\n\nworktree /b\nHEAD def\nbranch refs/heads/b"
        with patch(CLASSIFIER, side_effect=_main_paths("/a")):
            records = parse_worktree_list(output)
        assert [r.path for r in records] == ["/a", "/b"]
        assert records[1].branch == "refs/heads/b"

    def test_records_without_separator(self):
        """Test that a new worktree line starts a new record even without a blank line."""
        output = "worktree /a\nHEAD abc\nworktree /b\nHEAD def\n"
        with patch(CLASSIFIER, side_effect=_main_paths("/a")):
            records = parse_worktree_list(output)
        assert [(r.path, r.commit) for r in records] == [("/a", "abc"), ("/b", "def")]

    def test_records_without_path_dropped(self):
        """Test that fragments lacking a worktree line are ignored."""
        output = "HEAD abc\nbranch refs/heads/orphan\n\nworktree /a\nHEAD def\n"
        with patch(CLASSIFIER, return_value=True):
            records = parse_worktree_list(output)
        assert [r.path for r in records] == ["/a"]

    def test_unknown_keys_ignored(self):
        """Test that keys added by newer git versions do not break parsing."""
        output = "worktree /a\nHEAD abc\nbranch refs/heads/main\nfuture-key value\n"
        with patch(CLASSIFIER, return_value=True):
            (record,) = parse_worktree_list(output)
        assert record.branch == "refs/heads/main"

    def test_bare_record_keeps_empty_commit(self):
        """Test that a bare record without HEAD has an empty commit and is not main."""
        output = "worktree /repo.git\nbare\n\nworktree /wt\nHEAD abc\nbranch refs/heads/x\n"
        with patch(CLASSIFIER, side_effect=_main_paths()):
            records = parse_worktree_list(output)
        bare, linked = records
        assert bare.is_bare is True
        assert bare.commit == ""
        assert bare.is_main is False
        assert linked.is_main is False

    def test_empty_output(self):
        """Test that empty output yields no records."""
        assert parse_worktree_list("") == []
        assert parse_worktree_list("\n\n") == []

    def test_parsing_is_repeatable(self):
        """Test that the same output parses to identical records."""
        with patch(CLASSIFIER, side_effect=_main_paths("/work/project")):
            assert parse_worktree_list(SAMPLE) == parse_worktree_list(SAMPLE)


class TestMainClassification:
    """Test how the main record is chosen."""

    def test_metadata_overrides_listing_order(self):
        """Test that the record with main metadata wins even when listed second."""
        output = "worktree /linked\nHEAD abc\nbranch refs/heads/x\n\nworktree /main\nHEAD def\nbranch refs/heads/main\n"
        with patch(CLASSIFIER, side_effect=_main_paths("/main")):
            records = parse_worktree_list(output)
        assert [r.is_main for r in records] == [False, True]

    def test_listing_policy_trusts_order(self):
        """Test that the listing policy marks the first record main without checking disk."""
        output = "worktree /linked\nHEAD abc\n\nworktree /main\nHEAD def\n"
        with patch(CLASSIFIER, side_effect=_main_paths("/main")) as classifier:
            records = parse_worktree_list(output, MainDetectionPolicy.LISTING)
        assert [r.is_main for r in records] == [True, False]
        classifier.assert_not_called()

    def test_listing_policy_accepts_string(self):
        """Test that the policy can be given by its config value."""
        output = "worktree /a\nHEAD abc\n"
        with patch(CLASSIFIER, return_value=False):
            (record,) = parse_worktree_list(output, "listing")
        assert record.is_main is True

    def test_listing_policy_skips_bare_first_record(self):
        """Test that a bare first record is never main under the listing policy."""
        output = "worktree /repo.git\nbare\n\nworktree /wt\nHEAD abc\n"
        with patch(CLASSIFIER, return_value=False):
            records = parse_worktree_list(output, MainDetectionPolicy.LISTING)
        assert [r.is_main for r in records] == [False, False]

    def test_multiple_mains_keep_first(self):
        """Test that only one record stays main when metadata is contradictory."""
        output = "worktree /a\nHEAD abc\n\nworktree /b\nHEAD def\n"
        with patch(CLASSIFIER, return_value=True):
            records = parse_worktree_list(output)
        assert [r.is_main for r in records] == [True, False]

    def test_no_main_promotes_first(self):
        """Test that the first non-bare record is promoted when none looks main."""
        output = "worktree /a\nHEAD abc\n\nworktree /b\nHEAD def\n"
        with patch(CLASSIFIER, return_value=False):
            records = parse_worktree_list(output)
        assert [r.is_main for r in records] == [True, False]

    def test_first_record_defaults_to_main(self):
        """Test that only the first record is classified with a main default."""
        output = "worktree /a\nHEAD abc\n\nworktree /b\nHEAD def\n"
        with patch(CLASSIFIER, return_value=False) as classifier:
            parse_worktree_list(output)
        defaults = [call.kwargs["default_if_unknown"] for call in classifier.call_args_list]
        assert defaults == [True, False]

    def test_invalid_policy_rejected(self):
        """Test that an unknown policy value raises."""
        with pytest.raises(ValueError):
            parse_worktree_list("worktree /a\n", "guess")


class TestRealListing:
    """Test parsing output produced by git."""

    def test_main_and_linked(self, service, git_repo, linked_worktree):
        """Test that git's own listing yields one main and one linked record."""
        records = service.list_worktrees()
        by_path = {r.path: r for r in records}
        assert by_path[git_repo.working_dir].is_main is True
        assert by_path[str(linked_worktree)].is_main is False
        assert by_path[str(linked_worktree)].branch == "refs/heads/feature/a"
