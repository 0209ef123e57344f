"""
Central configuration for the gitflow release scripts.
"""

# Action inputs (GitHub exposes each input as INPUT_<NAME>)
INPUT_GITHUB_TOKEN = "GITHUB_TOKEN"
INPUT_BOT_TOKEN = "BOT_TOKEN"
INPUT_MASTER_BRANCH = "MASTER_BRANCH"
INPUT_DEVELOP_BRANCH = "DEVELOP_BRANCH"
INPUT_RELEASE_BRANCH_PREFIX = "RELEASE_BRANCH_PREFIX"
INPUT_HOTFIX_BRANCH_PREFIX = "HOTFIX_BRANCH_PREFIX"
INPUT_CHANGELOG_CONFIG = "CHANGELOG_CONFIG"

# Branch defaults
DEFAULT_MASTER_BRANCH = "master"
DEFAULT_DEVELOP_BRANCH = "develop"
DEFAULT_RELEASE_PREFIX = "release/"
DEFAULT_HOTFIX_PREFIX = "hotfix/"

# Event names
EVENT_PUSH = "push"
EVENT_PULL_REQUEST = "pull_request"

HEADS_REF_PREFIX = "refs/heads/"

# Promotion PR title
PR_TITLE_TEMPLATE = "chore(release): {version}"

# Review event used by the automation actor
REVIEW_APPROVE = "APPROVE"

# Conventional commit type -> changelog section (ordered)
CHANGELOG_TYPES = [
    {"type": "feat", "section": "Features", "hidden": False},
    {"type": "fix", "section": "Bug Fixes", "hidden": False},
    {"type": "revert", "section": "Reverts", "hidden": False},
    {"type": "docs", "section": "Documentation", "hidden": False},
    {"type": "style", "section": "Styles", "hidden": False},
    {"type": "chore", "section": "Miscellaneous Chores", "hidden": False},
    {"type": "refactor", "section": "Code Refactoring", "hidden": False},
    {"type": "test", "section": "Tests", "hidden": False},
    {"type": "build", "section": "Build System", "hidden": True},
    {"type": "ci", "section": "Continuous Integration", "hidden": True},
]

BREAKING_CHANGES_SECTION = "⚠ BREAKING CHANGES"
