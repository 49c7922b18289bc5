"""
Unit tests for the review workspace and the background task queue.
"""

import os
from unittest.mock import Mock

import pytest

from tf_pr_reviewer.models.pull_request import PullRequestContext
from tf_pr_reviewer.models.review import ReviewResult
from tf_pr_reviewer.review.tasks import ReviewTaskQueue
from tf_pr_reviewer.review.workspace import ReviewWorkspace, WorkspaceError


CONTEXT = PullRequestContext(owner="a", repo="b", pr_number=3, base_sha="base", head_sha="head")


class TestReviewWorkspace:
    """Unit tests for ReviewWorkspace."""

    def test_lifecycle(self, tmp_path):
        with ReviewWorkspace(str(tmp_path), pr_number=3) as workspace:
            assert os.path.isdir(workspace.path)
            assert os.path.basename(workspace.path).startswith("pr-3-")

            written = workspace.write_file("modules/vpc/main.tf", "module body\n")
            with open(written, encoding="utf-8") as f:
                assert f.read() == "module body\n"

        assert not os.path.exists(workspace.path)

    def test_removed_when_body_raises(self, tmp_path):
        with pytest.raises(RuntimeError):
            with ReviewWorkspace(str(tmp_path), pr_number=3) as workspace:
                workspace.write_file("main.tf", "x")
                raise RuntimeError("lint exploded")

        assert list(tmp_path.iterdir()) == []

    def test_names_are_unique(self, tmp_path):
        first = ReviewWorkspace(str(tmp_path), pr_number=3)
        second = ReviewWorkspace(str(tmp_path), pr_number=3)

        assert first.create() != second.create()

        first.cleanup()
        second.cleanup()

    def test_cleanup_tolerates_missing_directory(self, tmp_path):
        workspace = ReviewWorkspace(str(tmp_path), pr_number=3)
        workspace.create()
        os.rmdir(workspace.path)

        workspace.cleanup()

    def test_write_before_create(self, tmp_path):
        with pytest.raises(WorkspaceError):
            ReviewWorkspace(str(tmp_path)).write_file("main.tf", "")

    @pytest.mark.parametrize("relative_path", ["../main.tf", "/etc/passwd", "a/../../b.tf", "."])
    def test_refuses_paths_outside_workspace(self, tmp_path, relative_path):
        with ReviewWorkspace(str(tmp_path / "ws")) as workspace:
            with pytest.raises(WorkspaceError):
                workspace.write_file(relative_path, "x")


class TestReviewTaskQueue:
    """Unit tests for ReviewTaskQueue."""

    def test_synchronous_runs_inline(self):
        orchestrator = Mock()
        orchestrator.run.return_value = ReviewResult(review_id="r1", repository="a/b", pr_number=3, status="completed")

        future = ReviewTaskQueue(orchestrator, synchronous=True).submit(CONTEXT)

        assert future.done()
        assert future.result().status == "completed"
        orchestrator.run.assert_called_once_with(CONTEXT)

    def test_background_run(self):
        orchestrator = Mock()
        orchestrator.run.return_value = ReviewResult(review_id="r1", repository="a/b", pr_number=3, status="skipped")
        queue = ReviewTaskQueue(orchestrator, max_workers=2)

        try:
            future = queue.submit(CONTEXT)
            assert future.result(timeout=5).status == "skipped"
        finally:
            queue.shutdown()

    def test_crashing_run_is_captured_in_future(self):
        orchestrator = Mock()
        orchestrator.run.side_effect = RuntimeError("unexpected")

        future = ReviewTaskQueue(orchestrator, synchronous=True).submit(CONTEXT)

        assert isinstance(future.exception(), RuntimeError)
