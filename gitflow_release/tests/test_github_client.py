import subprocess
import unittest
from unittest.mock import MagicMock, patch
import json


from gitflow_release.scripts.github_client import GitHubClient, GitHubClientError

class TestGitHubClient(unittest.TestCase):
    def setUp(self):
        self.repo = "owner/repo"
        self.token = "fake-token"
        self.client = GitHubClient(self.repo, self.token)

    @patch("subprocess.run")
    def test_run_gh_success(self, mock_run):
        mock_result = MagicMock()
        mock_result.stdout = "output\n"
        mock_run.return_value = mock_result

        output = self.client._run_gh(["some", "cmd"])

        self.assertEqual(output, "output\n")
        # Check env contains token
        args, kwargs = mock_run.call_args
        self.assertEqual(args[0], ["gh", "some", "cmd"])
        self.assertIn("GH_TOKEN", kwargs['env'])
        self.assertEqual(kwargs['env']['GH_TOKEN'], "fake-token")

    @patch("subprocess.run")
    def test_run_gh_without_token_uses_ambient_auth(self, mock_run):
        mock_run.return_value = MagicMock(stdout="")
        GitHubClient(self.repo)._run_gh(["api", "user"])

        _, kwargs = mock_run.call_args
        self.assertIsNone(kwargs['env'])

    @patch("subprocess.run")
    def test_run_gh_failure(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(1, ["gh"], stderr="error")

        with self.assertRaises(GitHubClientError) as context:
            self.client._run_gh(["fail"])

        self.assertIn("gh command failed", str(context.exception))

    @patch("subprocess.run")
    def test_run_gh_missing_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError("gh")

        with self.assertRaises(GitHubClientError):
            self.client._run_gh(["api"])

    @patch("gitflow_release.scripts.github_client.GitHubClient._run_gh")
    def test_create_pull_request(self, mock_run_gh):
        mock_run_gh.return_value = json.dumps({
            "number": 42,
            "html_url": "https://github.com/owner/repo/pull/42",
        })

        pr = self.client.create_pull_request(
            head="release/2.3.0", base="master", title="chore(release): 2.3.0"
        )

        self.assertEqual(pr, {"number": 42, "html_url": "https://github.com/owner/repo/pull/42"})
        args = mock_run_gh.call_args[0][0]
        self.assertEqual(args[:4], ["api", "repos/owner/repo/pulls", "-X", "POST"])
        self.assertIn("head=release/2.3.0", args)
        self.assertIn("base=master", args)
        self.assertIn("title=chore(release): 2.3.0", args)
        self.assertFalse(any(a.startswith("body=") for a in args))

    @patch("gitflow_release.scripts.github_client.GitHubClient._run_gh")
    def test_create_pull_request_without_number(self, mock_run_gh):
        mock_run_gh.return_value = json.dumps({"message": "Validation Failed"})

        with self.assertRaises(GitHubClientError):
            self.client.create_pull_request("release/2.3.0", "master", "t")

    @patch("gitflow_release.scripts.github_client.GitHubClient._run_gh")
    def test_invalid_json_response(self, mock_run_gh):
        mock_run_gh.return_value = "not json"

        with self.assertRaises(GitHubClientError) as context:
            self.client.create_review(42)

        self.assertIn("Failed to parse API response", str(context.exception))

    @patch("gitflow_release.scripts.github_client.GitHubClient._run_gh")
    def test_create_review(self, mock_run_gh):
        mock_run_gh.return_value = json.dumps({"id": 9, "state": "APPROVED"})

        review = self.client.create_review(42, event="APPROVE")

        self.assertEqual(review, {"id": 9, "state": "APPROVED"})
        args = mock_run_gh.call_args[0][0]
        self.assertIn("repos/owner/repo/pulls/42/reviews", args)
        self.assertIn("event=APPROVE", args)

    @patch("gitflow_release.scripts.github_client.GitHubClient._run_gh")
    def test_create_tag_creates_object_then_ref(self, mock_run_gh):
        mock_run_gh.side_effect = [
            json.dumps({"sha": "tagobjectsha"}),
            json.dumps({"ref": "refs/tags/2.3.0"}),
        ]

        result = self.client.create_tag("2.3.0", "commitsha", message="2.3.0")

        self.assertEqual(result, {"ref": "refs/tags/2.3.0"})
        tag_args = mock_run_gh.call_args_list[0][0][0]
        ref_args = mock_run_gh.call_args_list[1][0][0]
        self.assertIn("repos/owner/repo/git/tags", tag_args)
        self.assertIn("tag=2.3.0", tag_args)
        self.assertIn("object=commitsha", tag_args)
        self.assertIn("type=commit", tag_args)
        self.assertIn("repos/owner/repo/git/refs", ref_args)
        self.assertIn("ref=refs/tags/2.3.0", ref_args)
        self.assertIn("sha=tagobjectsha", ref_args)

    @patch("gitflow_release.scripts.github_client.GitHubClient._run_gh")
    def test_create_tag_failure_skips_ref(self, mock_run_gh):
        mock_run_gh.side_effect = GitHubClientError("HTTP 422")

        with self.assertRaises(GitHubClientError):
            self.client.create_tag("2.3.0", "commitsha")

        self.assertEqual(mock_run_gh.call_count, 1)

    @patch("gitflow_release.scripts.github_client.GitHubClient._run_gh")
    def test_create_release(self, mock_run_gh):
        mock_run_gh.return_value = json.dumps({
            "id": 7,
            "html_url": "https://github.com/owner/repo/releases/tag/2.3.0",
        })

        release = self.client.create_release("2.3.0", name="2.3.0", body="### Features")

        self.assertEqual(release["id"], 7)
        args = mock_run_gh.call_args[0][0]
        self.assertIn("repos/owner/repo/releases", args)
        self.assertIn("tag_name=2.3.0", args)
        self.assertIn("name=2.3.0", args)
        self.assertIn("body=### Features", args)

    @patch("gitflow_release.scripts.github_client.GitHubClient._run_gh")
    def test_create_release_empty_body_omitted(self, mock_run_gh):
        mock_run_gh.return_value = json.dumps({"id": 7})

        self.client.create_release("2.3.0", body="")

        args = mock_run_gh.call_args[0][0]
        self.assertIn("name=2.3.0", args)
        self.assertFalse(any(a.startswith("body=") for a in args))

if __name__ == '__main__':
    unittest.main()
