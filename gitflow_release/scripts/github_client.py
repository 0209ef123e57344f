"""
GitHub API client wrapper for the gitflow release workflow.

This module provides a thin wrapper around the GitHub API operations
needed to promote release branches. It uses the `gh` CLI for
authentication and API access. Each client is bound to one token, so
the primary actor and the automation actor are separate instances.
"""

import json
import os
import subprocess
from typing import Any, Dict, List, Optional


class GitHubClientError(Exception):
    """Base exception for GitHub client errors."""
    pass


class GitHubClient:
    """
    GitHub API client for release promotion operations.

    Uses the `gh` CLI for authentication and API access.
    All methods are repository-scoped.
    """

    def __init__(self, repo: str, token: Optional[str] = None):
        """
        Initialize the GitHub client.

        Args:
            repo: Repository in format "owner/name"
            token: Optional GitHub token (uses gh CLI auth if not provided)
        """
        self.repo = repo
        self.token = token

    def _run_gh(self, args: List[str], check: bool = True) -> str:
        """
        Run a gh CLI command and return output.

        Args:
            args: Command arguments (without 'gh')
            check: Whether to raise on non-zero exit code

        Returns:
            Command output as string

        Raises:
            GitHubClientError: If command fails and check=True
        """
        cmd = ["gh"] + args
        if self.token:
            # Extend environment with GH_TOKEN, don't replace it
            env = {**os.environ, "GH_TOKEN": self.token}
        else:
            env = None

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=check,
                env=env
            )
            return result.stdout
        except subprocess.CalledProcessError as e:
            raise GitHubClientError(f"gh command failed: {e.stderr}")
        except OSError as e:
            raise GitHubClientError(f"gh command could not be started: {e}")

    def _api_json(self, args: List[str]) -> Dict[str, Any]:
        """Run a `gh api` call and decode its JSON response."""
        output = self._run_gh(["api"] + args)
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise GitHubClientError(f"Failed to parse API response: {e}")

    def create_pull_request(
        self,
        head: str,
        base: str,
        title: str,
        body: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Open a pull request.

        Args:
            head: Source branch
            base: Target branch
            title: PR title
            body: Optional PR body (markdown)

        Returns:
            Dict with 'number' and 'html_url'

        Raises:
            GitHubClientError: If creation fails
        """
        args = [
            f"repos/{self.repo}/pulls",
            "-X", "POST",
            "-f", f"head={head}",
            "-f", f"base={base}",
            "-f", f"title={title}",
        ]
        if body:
            args.extend(["-f", f"body={body}"])

        pr = self._api_json(args)
        try:
            return {"number": int(pr["number"]), "html_url": pr.get("html_url", "")}
        except (KeyError, TypeError, ValueError):
            raise GitHubClientError(f"Pull request response has no number: {pr}")

    def create_review(self, pull_number: int, event: str = "APPROVE") -> Dict[str, Any]:
        """
        Submit a review on a pull request.

        Args:
            pull_number: The PR number
            event: Review event ("APPROVE", "REQUEST_CHANGES" or "COMMENT")

        Returns:
            Dict with 'id' and 'state' of the review

        Raises:
            GitHubClientError: If the review cannot be submitted
        """
        review = self._api_json([
            f"repos/{self.repo}/pulls/{pull_number}/reviews",
            "-X", "POST",
            "-f", f"event={event}",
        ])
        return {"id": review.get("id"), "state": review.get("state", "")}

    def create_tag(
        self,
        tag_name: str,
        sha: str,
        message: Optional[str] = None,
        object_type: str = "commit"
    ) -> Dict[str, Any]:
        """Create an annotated tag at a specific object.

        Creates the tag object first, then the refs/tags/<tag_name>
        reference pointing at it.

        Args:
            tag_name: Name of the tag to create (e.g., "2.3.0")
            sha: SHA of the object to tag
            message: Tag message (defaults to the tag name)
            object_type: Type of the tagged object

        Returns:
            API response dict of the created ref

        Raises:
            GitHubClientError: If creation fails
        """
        tag = self._api_json([
            f"repos/{self.repo}/git/tags",
            "-X", "POST",
            "-f", f"tag={tag_name}",
            "-f", f"message={message or tag_name}",
            "-f", f"object={sha}",
            "-f", f"type={object_type}",
        ])
        tag_sha = tag.get("sha")
        if not tag_sha:
            raise GitHubClientError(f"Tag response has no sha: {tag}")

        return self._api_json([
            f"repos/{self.repo}/git/refs",
            "-X", "POST",
            "-f", f"ref=refs/tags/{tag_name}",
            "-f", f"sha={tag_sha}",
        ])

    def create_release(
        self,
        tag_name: str,
        name: Optional[str] = None,
        body: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create a published release for an existing tag.

        Args:
            tag_name: Tag the release points at
            name: Release name (defaults to the tag name)
            body: Release notes (markdown)

        Returns:
            Dict with 'id' and 'html_url' of the release

        Raises:
            GitHubClientError: If creation fails
        """
        args = [
            f"repos/{self.repo}/releases",
            "-X", "POST",
            "-f", f"tag_name={tag_name}",
            "-f", f"name={name or tag_name}",
        ]
        if body:
            args.extend(["-f", f"body={body}"])

        release = self._api_json(args)
        return {"id": release.get("id"), "html_url": release.get("html_url", "")}
