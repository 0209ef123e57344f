"""
Branch classification for the gitflow release workflow.

Maps a branch name onto its release role and extracts the version
identifier embedded in it:
    release/2.3.0 → (RELEASE, "2.3.0")
    hotfix/1.0.1  → (HOTFIX, "1.0.1")
"""

from enum import Enum

from . import config


class BranchRole(Enum):
    """Release role of a branch."""
    RELEASE = "release"
    HOTFIX = "hotfix"
    UNCLASSIFIED = "unclassified"

    @property
    def is_promotable(self) -> bool:
        return self in (BranchRole.RELEASE, BranchRole.HOTFIX)


class ReleaseFlowError(Exception):
    """Base exception for release flow errors."""
    pass


class MalformedBranchError(ReleaseFlowError):
    """Raised when a branch name carries no version after the separator."""
    pass


def classify(branch_name: str, release_prefix: str, hotfix_prefix: str) -> BranchRole:
    """
    Classify a branch by exact, case-sensitive prefix match.

    The release prefix is checked first, so a name matching both
    prefixes is a release branch.

    Args:
        branch_name: Branch name without refs/heads/
        release_prefix: Configured release prefix (e.g., "release/")
        hotfix_prefix: Configured hotfix prefix (e.g., "hotfix/")

    Returns:
        BranchRole of the branch
    """
    if release_prefix and branch_name.startswith(release_prefix):
        return BranchRole.RELEASE
    if hotfix_prefix and branch_name.startswith(hotfix_prefix):
        return BranchRole.HOTFIX
    return BranchRole.UNCLASSIFIED


def extract_version(branch_name: str) -> str:
    """
    Extract the version from a branch name.

    The version is everything after the first "/".

    Examples:
        >>> extract_version("release/2.3.0")
        '2.3.0'
        >>> extract_version("hotfix/1.0.1/a")
        '1.0.1/a'

    Raises:
        MalformedBranchError: If there is no "/" or nothing follows it
    """
    _, separator, version = branch_name.partition("/")
    if not separator or not version:
        raise MalformedBranchError(
            f"Branch '{branch_name}' does not contain a version after '/'"
        )
    return version


def branch_from_ref(ref: str) -> str:
    """Strip the refs/heads/ prefix from a git ref."""
    if ref.startswith(config.HEADS_REF_PREFIX):
        return ref[len(config.HEADS_REF_PREFIX):]
    return ref
