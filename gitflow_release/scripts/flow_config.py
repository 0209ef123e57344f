"""
Run configuration for the gitflow release workflow.

Inputs are read once from the action environment and carried through
the run in a frozen ReleaseFlowConfig.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

import yaml

from . import config


class ConfigurationError(Exception):
    """Raised when required inputs are missing or invalid."""
    pass


def _input(environ: Mapping[str, str], name: str) -> str:
    """Read an action input the way the runner exposes it (INPUT_<NAME>)."""
    value = environ.get(f"INPUT_{name}")
    if value is None:
        value = environ.get(f"INPUT_{name.replace('_', '-')}", "")
    return value.strip()


@dataclass(frozen=True)
class ReleaseFlowConfig:
    """
    Configuration for one run.

    Attributes:
        repo: Repository in format "owner/name"
        token: Token of the primary actor (creates PRs)
        bot_token: Token of the automation actor (approves, tags, releases)
        master_branch: Master-like branch name
        develop_branch: Develop-like branch name
        release_prefix: Prefix of release branches
        hotfix_prefix: Prefix of hotfix branches
        changelog_types: Ordered type/section table for release notes
    """
    repo: str
    token: str
    bot_token: str
    master_branch: str = config.DEFAULT_MASTER_BRANCH
    develop_branch: str = config.DEFAULT_DEVELOP_BRANCH
    release_prefix: str = config.DEFAULT_RELEASE_PREFIX
    hotfix_prefix: str = config.DEFAULT_HOTFIX_PREFIX
    changelog_types: List[Dict[str, Any]] = field(
        default_factory=lambda: list(config.CHANGELOG_TYPES)
    )

    @property
    def owner(self) -> str:
        return self.repo.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.repo.split("/", 1)[-1]

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> "ReleaseFlowConfig":
        """
        Build the configuration from the action environment.

        Args:
            environ: Environment mapping (usually os.environ)

        Returns:
            ReleaseFlowConfig

        Raises:
            ConfigurationError: If a token or GITHUB_REPOSITORY is missing,
                or the changelog config file is invalid
        """
        token = _input(environ, config.INPUT_GITHUB_TOKEN)
        if not token:
            raise ConfigurationError(
                f"Input required and not supplied: {config.INPUT_GITHUB_TOKEN}"
            )
        bot_token = _input(environ, config.INPUT_BOT_TOKEN)
        if not bot_token:
            raise ConfigurationError(
                f"Input required and not supplied: {config.INPUT_BOT_TOKEN}"
            )

        repo = environ.get("GITHUB_REPOSITORY", "").strip()
        if "/" not in repo:
            raise ConfigurationError(
                f"GITHUB_REPOSITORY must be 'owner/name', got '{repo}'"
            )

        changelog_types = list(config.CHANGELOG_TYPES)
        changelog_config = _input(environ, config.INPUT_CHANGELOG_CONFIG)
        if changelog_config:
            changelog_types = load_changelog_types(changelog_config)

        return cls(
            repo=repo,
            token=token,
            bot_token=bot_token,
            master_branch=_input(environ, config.INPUT_MASTER_BRANCH) or config.DEFAULT_MASTER_BRANCH,
            develop_branch=_input(environ, config.INPUT_DEVELOP_BRANCH) or config.DEFAULT_DEVELOP_BRANCH,
            release_prefix=_input(environ, config.INPUT_RELEASE_BRANCH_PREFIX) or config.DEFAULT_RELEASE_PREFIX,
            hotfix_prefix=_input(environ, config.INPUT_HOTFIX_BRANCH_PREFIX) or config.DEFAULT_HOTFIX_PREFIX,
            changelog_types=changelog_types,
        )


def load_changelog_types(path: str) -> List[Dict[str, Any]]:
    """
    Load a changelog type table from a YAML file.

    Uses the conventional-changelog preset layout:

        types:
          - type: feat
            section: Features
          - type: ci
            section: Continuous Integration
            hidden: true

    Args:
        path: Path to the YAML file

    Returns:
        List of {"type", "section", "hidden"} dicts in file order

    Raises:
        ConfigurationError: If the file cannot be read or has no valid types list
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read changelog config {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse changelog config {path}: {e}")

    types = data.get("types") if isinstance(data, dict) else None
    if not isinstance(types, list) or not types:
        raise ConfigurationError(f"Changelog config {path} has no 'types' list")

    table = []
    for item in types:
        if not isinstance(item, dict) or not item.get("type"):
            raise ConfigurationError(f"Invalid changelog type entry: {item!r}")
        table.append({
            "type": str(item["type"]),
            "section": str(item.get("section", item["type"])),
            "hidden": bool(item.get("hidden", False)),
        })
    return table
