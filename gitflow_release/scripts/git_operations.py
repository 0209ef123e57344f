"""
Git operations helper for the gitflow release workflow.

This module reads tags and commit history from the checked-out
repository using subprocess calls to git. The workflow checkout must
include full history and tags (actions/checkout with fetch-depth: 0).
"""

import subprocess
from typing import Iterator, List, Optional, Tuple

# Field and record separators for `git log --format`
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"

# Lowercased `git describe` messages meaning no tag is reachable
_NO_TAG_MESSAGES = ("no names found", "cannot describe", "no tags can describe")


class GitOperationsError(Exception):
    """Base exception for git operations errors."""
    pass


class GitOperations:
    """
    Local git operations for changelog generation.

    Provides tag discovery and commit-log reads on a working copy.
    """

    def __init__(self, work_dir: str):
        """
        Initialize git operations.

        Args:
            work_dir: Local directory path of the checked-out repository
        """
        self.work_dir = work_dir

    def _run_git(self, args: List[str]) -> str:
        """
        Run a git command in the working copy and return output.

        Args:
            args: Command arguments (without 'git')

        Returns:
            Command output as string

        Raises:
            GitOperationsError: If the command fails
        """
        cmd = ["git"] + args

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                cwd=self.work_dir,
            )
            return result.stdout.strip()
        except subprocess.CalledProcessError as e:
            raise GitOperationsError(f"git {' '.join(args)} failed: {e.stderr}")
        except OSError as e:
            raise GitOperationsError(f"git {' '.join(args)} could not be started: {e}")

    def latest_tag(self, ref: str = "HEAD") -> Optional[str]:
        """
        Find the most recent tag reachable from a reference.

        Args:
            ref: Reference to describe (commit SHA, branch or "HEAD")

        Returns:
            Tag name, or None if no tag is reachable

        Raises:
            GitOperationsError: If git fails for any other reason
        """
        try:
            return self._run_git(["describe", "--tags", "--abbrev=0", ref]) or None
        except GitOperationsError as e:
            error_msg = str(e).lower()
            if any(message in error_msg for message in _NO_TAG_MESSAGES):
                return None
            raise

    def iter_commits(
        self,
        since: Optional[str] = None,
        until: str = "HEAD"
    ) -> Iterator[Tuple[str, str]]:
        """
        Iterate over commits newer than `since` up to `until`.

        Commits are yielded in `git log` order (newest first). Without
        `since`, the whole history of `until` is read.

        Args:
            since: Exclusive lower bound (usually the last tag)
            until: Inclusive upper bound

        Yields:
            (sha, full commit message) tuples

        Raises:
            GitOperationsError: If the log cannot be read
        """
        rev_range = f"{since}..{until}" if since else until
        output = self._run_git([
            "log",
            f"--format=%H{_FIELD_SEP}%B{_RECORD_SEP}",
            rev_range,
        ])

        for record in output.split(_RECORD_SEP):
            record = record.strip()
            if not record:
                continue
            sha, _, message = record.partition(_FIELD_SEP)
            yield sha.strip(), message.strip()
