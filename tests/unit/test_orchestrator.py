"""
Unit tests for the review orchestrator.

Collaborators are mocks; the workspace root is a pytest tmp_path so the
cleanup invariant can be checked by listing it after each run.
"""

import json
from unittest.mock import Mock

import pytest

from tf_pr_reviewer.github.client import GitHubAPIError
from tf_pr_reviewer.lint.runner import LinterNotFoundError
from tf_pr_reviewer.llm.summarizer import Summarizer
from tf_pr_reviewer.models.pull_request import PullRequestContext, ChangedFile
from tf_pr_reviewer.models.review import LintResult, ReviewState
from tf_pr_reviewer.review.orchestrator import ReviewOrchestrator
from tf_pr_reviewer.storage.preferences import PreferenceStoreError


CONTEXT = PullRequestContext(owner="a", repo="b", pr_number=12, base_sha="base000", head_sha="head111")

FINDINGS = json.dumps({"issues": [{"rule": {"name": "terraform_typed_variables"}, "message": "untyped"}]})


@pytest.fixture
def collaborators():
    store = Mock()
    store.get.return_value = "cost"

    github = Mock()
    github.list_pull_request_files.return_value = [
        ChangedFile("main.tf", "modified"),
        ChangedFile("modules/vpc/variables.tf", "added"),
        ChangedFile("README.md", "modified"),
    ]
    github.get_file_content.side_effect = lambda owner, repo, path, ref: f"# {path}@{ref}\n"

    lint_runner = Mock()
    lint_runner.lint.return_value = LintResult(command=["tflint"], exit_code=0, stdout='{"issues": []}', stderr="")

    summarizer = Mock()
    summarizer.summarize.return_value = "Looks fine for cost."

    return store, github, lint_runner, summarizer


def build(collaborators, tmp_path, **kwargs):
    store, github, lint_runner, summarizer = collaborators
    return ReviewOrchestrator(
        preference_store=store,
        github=github,
        lint_runner=lint_runner,
        summarizer=summarizer,
        workspace_root=str(tmp_path),
        **kwargs
    )


class TestReviewOrchestrator:
    """Unit tests for ReviewOrchestrator."""

    def test_successful_review(self, collaborators, tmp_path):
        store, github, lint_runner, summarizer = collaborators
        seen_files = {}

        def lint(directory):
            for path in tmp_path.rglob("*"):
                if path.is_file():
                    seen_files[str(path.relative_to(directory))] = path.read_text()
            return LintResult(command=["tflint"], exit_code=0, stdout='{"issues": []}', stderr="")

        lint_runner.lint.side_effect = lint

        result = build(collaborators, tmp_path).run(CONTEXT)

        assert result.status == "completed"
        assert result.states == [
            ReviewState.IDLE,
            ReviewState.PREFERENCES_CHECKED,
            ReviewState.FILES_LISTED,
            ReviewState.FILES_FETCHED,
            ReviewState.LINTED,
            ReviewState.SUMMARIZED,
            ReviewState.COMMENTED,
            ReviewState.CLEANED,
        ]
        store.get.assert_called_once_with("a/b")
        assert seen_files == {
            "main.tf": "# main.tf@head111\n",
            "modules/vpc/variables.tf": "# modules/vpc/variables.tf@head111\n",
        }
        summarizer.summarize.assert_called_once_with("cost", '{"issues": []}')
        github.create_issue_comment.assert_called_once_with("a", "b", 12, "Looks fine for cost.")
        assert result.comment_posted
        assert list(tmp_path.iterdir()) == []

    def test_no_preferences_skips_everything(self, collaborators, tmp_path):
        store, github, lint_runner, summarizer = collaborators
        store.get.return_value = None

        result = build(collaborators, tmp_path).run(CONTEXT)

        assert result.status == "skipped"
        assert result.states == [ReviewState.IDLE, ReviewState.SKIPPED]
        github.list_pull_request_files.assert_not_called()
        lint_runner.lint.assert_not_called()
        summarizer.summarize.assert_not_called()
        github.create_issue_comment.assert_not_called()

    def test_empty_priorities_still_reviews(self, collaborators, tmp_path):
        store, github, _, _ = collaborators
        store.get.return_value = ""

        result = build(collaborators, tmp_path).run(CONTEXT)

        assert result.status == "completed"
        github.create_issue_comment.assert_called_once()

    def test_no_tracked_files_creates_no_workspace(self, collaborators, tmp_path):
        _, github, lint_runner, _ = collaborators
        github.list_pull_request_files.return_value = [ChangedFile("README.md", "modified")]

        result = build(collaborators, tmp_path).run(CONTEXT)

        assert result.status == "skipped"
        assert result.final_state == ReviewState.SKIPPED
        assert result.workspace_path is None
        github.get_file_content.assert_not_called()
        lint_runner.lint.assert_not_called()
        github.create_issue_comment.assert_not_called()
        assert list(tmp_path.iterdir()) == []

    def test_removed_files_are_not_fetched(self, collaborators, tmp_path):
        _, github, _, _ = collaborators
        github.list_pull_request_files.return_value = [
            ChangedFile("old.tf", "removed"),
            ChangedFile("main.tf", "modified"),
        ]

        result = build(collaborators, tmp_path).run(CONTEXT)

        assert result.files_reviewed == ["main.tf"]
        github.get_file_content.assert_called_once_with("a", "b", "main.tf", "head111")

    def test_custom_tracked_extensions(self, collaborators, tmp_path):
        _, github, _, _ = collaborators
        github.list_pull_request_files.return_value = [
            ChangedFile("prod.tfvars", "added"),
            ChangedFile("main.tf", "modified"),
        ]

        result = build(collaborators, tmp_path, tracked_extensions=[".tfvars"]).run(CONTEXT)

        assert result.files_reviewed == ["prod.tfvars"]

    def test_parallel_fetch(self, collaborators, tmp_path):
        _, github, _, _ = collaborators

        result = build(collaborators, tmp_path, fetch_workers=4).run(CONTEXT)

        assert result.status == "completed"
        assert sorted(result.files_reviewed) == ["main.tf", "modules/vpc/variables.tf"]
        assert github.get_file_content.call_count == 2

    def test_lint_exit_code_two_output_reaches_prompt(self, collaborators, tmp_path):
        store, github, lint_runner, _ = collaborators
        lint_runner.lint.return_value = LintResult(command=["tflint"], exit_code=2, stdout=FINDINGS, stderr="")
        session = Mock()
        session.post.return_value.json.return_value = {"response": "Add variable types."}
        summarizer = Summarizer(session=session)

        orchestrator = ReviewOrchestrator(store, github, lint_runner, summarizer, workspace_root=str(tmp_path))
        result = orchestrator.run(CONTEXT)

        prompt = session.post.call_args.kwargs["json"]["prompt"]
        assert FINDINGS in prompt
        assert result.lint_exit_code == 2
        assert ReviewState.COMMENTED in result.states
        github.create_issue_comment.assert_called_once_with("a", "b", 12, "Add variable types.")

    def test_empty_summary_is_replaced(self, collaborators, tmp_path):
        _, github, _, summarizer = collaborators
        summarizer.summarize.return_value = ""

        build(collaborators, tmp_path).run(CONTEXT)

        github.create_issue_comment.assert_called_once_with("a", "b", 12, "No response from LLM.")

    def test_listing_failure_aborts_without_workspace(self, collaborators, tmp_path):
        _, github, lint_runner, _ = collaborators
        github.list_pull_request_files.side_effect = GitHubAPIError("GitHub API error: 502", status_code=502)

        result = build(collaborators, tmp_path).run(CONTEXT)

        assert result.status == "failed"
        assert result.final_state == ReviewState.PREFERENCES_CHECKED
        assert "502" in result.error
        lint_runner.lint.assert_not_called()
        assert list(tmp_path.iterdir()) == []

    def test_malformed_preferences_fail_the_run(self, collaborators, tmp_path):
        store, github, _, _ = collaborators
        store.get.side_effect = PreferenceStoreError("bad json")

        result = build(collaborators, tmp_path).run(CONTEXT)

        assert result.status == "failed"
        github.list_pull_request_files.assert_not_called()


class TestWorkspaceCleanup:
    """Fault injection after workspace creation: the workspace is always removed."""

    def assert_cleaned(self, result, tmp_path):
        assert result.workspace_path is not None
        assert result.final_state == ReviewState.CLEANED
        assert list(tmp_path.iterdir()) == []

    def test_fetch_failure(self, collaborators, tmp_path):
        _, github, lint_runner, _ = collaborators
        github.get_file_content.side_effect = GitHubAPIError("GitHub API error: 404", status_code=404)

        result = build(collaborators, tmp_path).run(CONTEXT)

        assert result.status == "failed"
        lint_runner.lint.assert_not_called()
        github.create_issue_comment.assert_not_called()
        self.assert_cleaned(result, tmp_path)

    def test_parallel_fetch_failure(self, collaborators, tmp_path):
        _, github, lint_runner, _ = collaborators

        def fetch(owner, repo, path, ref):
            if path == "main.tf":
                raise GitHubAPIError("GitHub API error: 500", status_code=500)
            return "content"

        github.get_file_content.side_effect = fetch

        result = build(collaborators, tmp_path, fetch_workers=3).run(CONTEXT)

        assert result.status == "failed"
        lint_runner.lint.assert_not_called()
        self.assert_cleaned(result, tmp_path)

    def test_lint_failure(self, collaborators, tmp_path):
        _, github, lint_runner, summarizer = collaborators
        lint_runner.lint.side_effect = LinterNotFoundError("Linter executable not found: tflint")

        result = build(collaborators, tmp_path).run(CONTEXT)

        assert result.status == "failed"
        assert "tflint" in result.error
        summarizer.summarize.assert_not_called()
        github.create_issue_comment.assert_not_called()
        self.assert_cleaned(result, tmp_path)

    def test_summarize_failure(self, collaborators, tmp_path):
        _, github, _, summarizer = collaborators
        summarizer.summarize.side_effect = RuntimeError("boom")

        result = build(collaborators, tmp_path).run(CONTEXT)

        assert result.status == "failed"
        github.create_issue_comment.assert_not_called()
        self.assert_cleaned(result, tmp_path)

    def test_comment_failure(self, collaborators, tmp_path):
        _, github, _, _ = collaborators
        github.create_issue_comment.side_effect = GitHubAPIError("GitHub API error: 403", status_code=403)

        result = build(collaborators, tmp_path).run(CONTEXT)

        assert result.status == "failed"
        assert not result.comment_posted
        assert ReviewState.COMMENTED not in result.states
        assert ReviewState.SUMMARIZED in result.states
        self.assert_cleaned(result, tmp_path)

    def test_path_traversal_is_refused(self, collaborators, tmp_path):
        _, github, lint_runner, _ = collaborators
        github.list_pull_request_files.return_value = [ChangedFile("../../escape.tf", "added")]

        result = build(collaborators, tmp_path / "workspaces").run(CONTEXT)

        assert result.status == "failed"
        assert not (tmp_path / "escape.tf").exists()
        lint_runner.lint.assert_not_called()
        assert list((tmp_path / "workspaces").iterdir()) == []
