"""
Unit tests for the action entry point.

These tests run main() against a fake runner environment with the
engine's gateway mocked, and check exit status, error annotations
and step outputs.
"""

import json

import pytest
from unittest.mock import Mock, patch

from gitflow_release.scripts import release_flow_action
from gitflow_release.scripts.flow_engine import FlowResult, NoOp, Promote
from gitflow_release.scripts.repository_gateway import (
    GatewayError,
    PullRequestRef,
    ReleaseRecord,
)


@pytest.fixture
def runner_env(tmp_path):
    """Runner environment for a push of release/2.3.0."""
    event_path = tmp_path / "event.json"
    event_path.write_text(json.dumps({"ref": "refs/heads/release/2.3.0"}))
    output_path = tmp_path / "output.txt"
    output_path.write_text("")
    return {
        "GITHUB_REPOSITORY": "owner/repo",
        "GITHUB_EVENT_NAME": "push",
        "GITHUB_EVENT_PATH": str(event_path),
        "GITHUB_OUTPUT": str(output_path),
        "GITHUB_WORKSPACE": str(tmp_path),
        "INPUT_GITHUB_TOKEN": "primary-token",
        "INPUT_BOT_TOKEN": "bot-token",
    }


@pytest.fixture
def mock_gateway():
    gateway = Mock()
    gateway.create_pull_request.return_value = PullRequestRef(
        number=42, head="release/2.3.0", base="master"
    )
    return gateway


def read_outputs(path):
    """Parse heredoc-style GITHUB_OUTPUT content into a dict."""
    outputs = {}
    lines = open(path).read().splitlines()
    i = 0
    while i < len(lines):
        key, delimiter = lines[i].split("<<", 1)
        value_lines = []
        i += 1
        while lines[i] != delimiter:
            value_lines.append(lines[i])
            i += 1
        outputs[key] = "\n".join(value_lines)
        i += 1
    return outputs


class TestMain:
    """Tests for main()."""

    def test_push_success(self, runner_env, mock_gateway):
        with patch.object(release_flow_action, "RepositoryGateway", return_value=mock_gateway):
            status = release_flow_action.main([], environ=runner_env)

        assert status == 0
        mock_gateway.create_pull_request.assert_called_once_with(
            head="release/2.3.0", base="master", title="chore(release): 2.3.0"
        )
        mock_gateway.approve_pull_request.assert_called_once_with(42)
        outputs = read_outputs(runner_env["GITHUB_OUTPUT"])
        assert outputs["outcome"] == "completed"
        assert outputs["version"] == "2.3.0"
        assert outputs["pull_request_number"] == "42"

    def test_gateway_wired_with_both_actors(self, runner_env, mock_gateway):
        with patch.object(release_flow_action, "RepositoryGateway", return_value=mock_gateway) as gateway_cls:
            release_flow_action.main([], environ=runner_env)

        kwargs = gateway_cls.call_args.kwargs
        assert kwargs["primary"].token == "primary-token"
        assert kwargs["automation"].token == "bot-token"
        assert kwargs["primary"].repo == "owner/repo"
        assert kwargs["git"].work_dir == runner_env["GITHUB_WORKSPACE"]

    def test_workspace_argument(self, runner_env, mock_gateway):
        with patch.object(release_flow_action, "RepositoryGateway", return_value=mock_gateway) as gateway_cls:
            release_flow_action.main(["--workspace", "/src"], environ=runner_env)

        assert gateway_cls.call_args.kwargs["git"].work_dir == "/src"

    def test_noop_exits_successfully(self, runner_env, mock_gateway):
        runner_env["GITHUB_EVENT_NAME"] = "workflow_dispatch"

        with patch.object(release_flow_action, "RepositoryGateway", return_value=mock_gateway):
            status = release_flow_action.main([], environ=runner_env)

        assert status == 0
        assert mock_gateway.mock_calls == []
        assert read_outputs(runner_env["GITHUB_OUTPUT"])["outcome"] == "skipped"

    def test_unrecognized_branch_fails(self, runner_env, mock_gateway, tmp_path, capsys):
        event_path = tmp_path / "feature.json"
        event_path.write_text(json.dumps({"ref": "refs/heads/feature/foo"}))
        runner_env["GITHUB_EVENT_PATH"] = str(event_path)

        with patch.object(release_flow_action, "RepositoryGateway", return_value=mock_gateway):
            status = release_flow_action.main([], environ=runner_env)

        assert status == 1
        assert "::error::Branch 'feature/foo' matches neither" in capsys.readouterr().out
        mock_gateway.create_pull_request.assert_not_called()

    def test_gateway_failure_fails(self, runner_env, mock_gateway, capsys):
        mock_gateway.create_pull_request.side_effect = GatewayError("Failed to create pull request: HTTP 422")

        with patch.object(release_flow_action, "RepositoryGateway", return_value=mock_gateway):
            status = release_flow_action.main([], environ=runner_env)

        assert status == 1
        assert "::error::Failed to create pull request: HTTP 422" in capsys.readouterr().out
        assert read_outputs(runner_env["GITHUB_OUTPUT"]) == {}

    def test_missing_token_fails(self, runner_env, capsys):
        del runner_env["INPUT_GITHUB_TOKEN"]

        status = release_flow_action.main([], environ=runner_env)

        assert status == 1
        assert "::error::Input required and not supplied: GITHUB_TOKEN" in capsys.readouterr().out


class TestResultOutputs:
    """Tests for result_outputs()."""

    def test_skipped(self):
        outputs = release_flow_action.result_outputs(FlowResult(decision=NoOp("not merged")))
        assert outputs == {
            "outcome": "skipped",
            "version": "",
            "pull_request_number": "",
            "release_url": "",
        }

    def test_with_release(self):
        result = FlowResult(
            decision=Promote(head="hotfix/1.0.1", base="develop", version="1.0.1"),
            pull_request=PullRequestRef(number=7, head="hotfix/1.0.1", base="develop"),
            release=ReleaseRecord(
                tag_name="1.0.1",
                commit_sha="abc",
                title="1.0.1",
                body="",
                html_url="https://github.com/owner/repo/releases/tag/1.0.1",
            ),
        )

        outputs = release_flow_action.result_outputs(result)

        assert outputs["outcome"] == "completed"
        assert outputs["version"] == "1.0.1"
        assert outputs["pull_request_number"] == "7"
        assert outputs["release_url"] == "https://github.com/owner/repo/releases/tag/1.0.1"

    def test_write_outputs_without_path_is_noop(self):
        release_flow_action.write_outputs({"outcome": "skipped"}, None)
