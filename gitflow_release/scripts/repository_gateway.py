"""Repository gateway for the gitflow release workflow.

This module executes the actions decided by the flow engine against
GitHub. It holds two clients: the primary actor opens pull requests,
the automation actor approves them and publishes tags and releases,
so an approval is never a self-approval.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from . import config
from .changelog_generator import ChangelogSourceError
from .git_operations import GitOperations, GitOperationsError
from .github_client import GitHubClient, GitHubClientError

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Raised when a hosting API call fails."""
    pass


@dataclass
class PullRequestRef:
    """A pull request opened by the gateway."""
    number: int
    head: str
    base: str
    url: str = ""


@dataclass
class ReleaseRecord:
    """A published tag and release."""
    tag_name: str
    commit_sha: str
    title: str
    body: str
    html_url: str = ""


class RepositoryGateway:
    """Executes pull request, review, tag and release operations.

    Example usage:
        gateway = RepositoryGateway(
            primary=GitHubClient("owner/repo", token),
            automation=GitHubClient("owner/repo", bot_token),
            git=GitOperations("/github/workspace"),
        )
        pr = gateway.create_pull_request("release/2.3.0", "master", "chore(release): 2.3.0")
        gateway.approve_pull_request(pr.number)
    """

    def __init__(
        self,
        primary: GitHubClient,
        automation: GitHubClient,
        git: Optional[GitOperations] = None
    ):
        """Initialize with one client per actor.

        Args:
            primary: Client authenticated as the primary actor
            automation: Client authenticated as the automation actor
            git: Local git operations for history reads
        """
        self.primary = primary
        self.automation = automation
        self.git = git
        if primary.token and primary.token == automation.token:
            logger.warning("Primary and automation actors share a token; approval will be rejected")

    def create_pull_request(self, head: str, base: str, title: str) -> PullRequestRef:
        """Open a pull request as the primary actor.

        Raises:
            GatewayError: If the pull request cannot be created
        """
        try:
            pr = self.primary.create_pull_request(head=head, base=base, title=title)
        except GitHubClientError as e:
            raise GatewayError(f"Failed to create pull request {head} -> {base}: {e}")

        logger.info(f"head: {head}, base: {base}")
        logger.info(f"Created pull request #{pr['number']} {pr.get('html_url', '')}")
        return PullRequestRef(
            number=pr["number"],
            head=head,
            base=base,
            url=pr.get("html_url", ""),
        )

    def approve_pull_request(self, number: int) -> None:
        """Approve a pull request as the automation actor.

        Raises:
            GatewayError: If the review cannot be submitted
        """
        try:
            self.automation.create_review(number, event=config.REVIEW_APPROVE)
        except GitHubClientError as e:
            raise GatewayError(f"Failed to approve pull request #{number}: {e}")
        logger.info(f"Approved pull request #{number}")

    def create_tag(self, tag_name: str, commit_sha: str, message: Optional[str] = None) -> None:
        """Tag a commit as the automation actor.

        Raises:
            GatewayError: If the tag cannot be created
        """
        try:
            self.automation.create_tag(
                tag_name,
                commit_sha,
                message=message or tag_name,
                object_type="commit",
            )
        except GitHubClientError as e:
            raise GatewayError(f"Failed to create tag {tag_name}: {e}")
        logger.info(f"Created tag {tag_name} at {commit_sha[:8]}")

    def create_release(
        self,
        tag_name: str,
        name: str,
        body: str,
        commit_sha: str = ""
    ) -> ReleaseRecord:
        """Publish a release for an existing tag as the automation actor.

        Raises:
            GatewayError: If the release cannot be created
        """
        try:
            release = self.automation.create_release(tag_name, name=name, body=body)
        except GitHubClientError as e:
            raise GatewayError(f"Failed to create release {tag_name}: {e}")

        logger.info(f"Published release {name} {release.get('html_url', '')}")
        return ReleaseRecord(
            tag_name=tag_name,
            commit_sha=commit_sha,
            title=name,
            body=body,
            html_url=release.get("html_url", ""),
        )

    def latest_tag(self, ref: str = "HEAD") -> Optional[str]:
        """Find the last tag reachable from ref.

        Raises:
            ChangelogSourceError: If the repository cannot be read
        """
        if self.git is None:
            raise ChangelogSourceError("No working copy configured for history reads")
        try:
            return self.git.latest_tag(ref)
        except GitOperationsError as e:
            raise ChangelogSourceError(f"Failed to find last tag: {e}")

    def read_commit_history_since(
        self,
        last_tag: Optional[str],
        until: str = "HEAD"
    ) -> Iterator[Tuple[str, str]]:
        """Stream (sha, message) pairs newer than last_tag, newest first.

        Errors surface while iterating, as GitOperationsError.
        """
        if self.git is None:
            raise ChangelogSourceError("No working copy configured for history reads")
        return self.git.iter_commits(since=last_tag, until=until)
