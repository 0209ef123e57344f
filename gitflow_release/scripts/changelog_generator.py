"""
Release notes generator for the gitflow release workflow.

Turns the commit history since the last tag into a release body
grouped by conventional-commit type:

    ## 2.3.0 (2026-10-18)

    ### Features

    * **api:** add pagination (1a2b3c4)

    ### Bug Fixes

    * handle empty payloads (5d6e7f8)
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pystache

from . import config
from .git_operations import GitOperationsError

logger = logging.getLogger(__name__)

# <type>[(scope)][!]: <description>
HEADER_PATTERN = re.compile(
    r"^(?P<type>[A-Za-z]+)"
    r"(?:\((?P<scope>[^()\r\n]*)\))?"
    r"(?P<breaking>!)?"
    r": (?P<description>\S.*)$"
)

# The note ends at a blank line or at the next `Token: ` trailer
BREAKING_FOOTER_PATTERN = re.compile(
    r"^BREAKING[ -]CHANGE: (?P<note>.+(?:\n(?![ \t]*$)(?![\w-]+: |BREAKING[ -]CHANGE: ).*)*)",
    re.MULTILINE,
)

SHORT_SHA_LENGTH = 7

HistoryItem = Union[str, Tuple[str, str]]


class ChangelogSourceError(Exception):
    """Raised when the commit history cannot be read."""
    pass


@dataclass
class ConventionalCommit:
    """A commit message parsed against the conventional-commit grammar."""
    type: str
    description: str
    scope: Optional[str] = None
    breaking: bool = False
    breaking_note: Optional[str] = None
    sha: str = ""


@dataclass
class ChangelogEntry:
    """All commits of one type, in history order."""
    type: str
    section: str
    commits: List[ConventionalCommit] = field(default_factory=list)

    @property
    def descriptions(self) -> List[str]:
        return [commit.description for commit in self.commits]


@dataclass
class ChangelogDocument:
    """Rendered release notes plus the entries they were built from."""
    body: str
    entries: List[ChangelogEntry] = field(default_factory=list)
    breaking_changes: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entries and not self.breaking_changes


def parse_commit(message: str, sha: str = "") -> Optional[ConventionalCommit]:
    """
    Parse a commit message as a conventional commit.

    Only the first line is matched against the header grammar; a
    BREAKING CHANGE footer anywhere in the body marks the commit as
    breaking.

    Examples:
        >>> parse_commit("feat(api)!: drop v1").scope
        'api'
        >>> parse_commit("Merge branch 'develop'") is None
        True

    Args:
        message: Full commit message
        sha: Commit SHA

    Returns:
        ConventionalCommit, or None if the header does not match
    """
    lines = message.strip().splitlines()
    if not lines:
        return None

    match = HEADER_PATTERN.match(lines[0].strip())
    if not match:
        return None

    scope = match.group("scope")
    breaking_note = None
    footer = BREAKING_FOOTER_PATTERN.search("\n".join(lines[1:]))
    if footer:
        breaking_note = footer.group("note").strip()

    description = match.group("description").strip()
    breaking = bool(match.group("breaking")) or breaking_note is not None
    if breaking and breaking_note is None:
        breaking_note = description

    return ConventionalCommit(
        type=match.group("type").lower(),
        description=description,
        scope=scope.strip() if scope and scope.strip() else None,
        breaking=breaking,
        breaking_note=breaking_note,
        sha=sha,
    )


class ChangelogGenerator:
    """
    Generates release notes from conventional-commit history.

    Sections follow the order of the type table; commits of types
    missing from the table or marked hidden are left out.

    Example usage:
        generator = ChangelogGenerator()
        document = generator.generate(
            ["feat: x", "chore: y", "build: z"],
            version="2.3.0",
        )
        print(document.body)
    """

    DEFAULT_TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "changelog"

    def __init__(
        self,
        types: Optional[List[Dict[str, Any]]] = None,
        template_dir: Optional[str] = None
    ):
        """Initialize with a type table and templates directory.

        Args:
            types: Ordered {"type", "section", "hidden"} table.
                   Defaults to config.CHANGELOG_TYPES
            template_dir: Custom template directory path.
                          Defaults to gitflow_release/templates/changelog/
        """
        self.types = types if types is not None else config.CHANGELOG_TYPES
        self.template_dir = Path(template_dir) if template_dir else self.DEFAULT_TEMPLATE_DIR
        self.renderer = pystache.Renderer(
            missing_tags='strict',
            escape=lambda x: x,  # Don't HTML-escape (markdown context)
        )

    def generate(
        self,
        history: Iterable[HistoryItem],
        version: Optional[str] = None,
        date: Optional[str] = None,
    ) -> ChangelogDocument:
        """Generate release notes from a commit history.

        Args:
            history: Commit messages, or (sha, message) tuples, newest first
            version: Optional version for the document heading
            date: Heading date (YYYY-MM-DD); defaults to today (UTC)

        Returns:
            ChangelogDocument; empty sections are valid

        Raises:
            ChangelogSourceError: If reading the history fails
        """
        commits = self._parse_history(history)
        entries = self.collect_entries(commits)
        breaking_changes = self._collect_breaking_changes(commits)

        heading = ""
        if version:
            if date is None:
                date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
            heading = f"{version} ({date})" if date else version

        body = self.render(entries, breaking_changes, heading)
        logger.info(
            f"Generated release notes with {sum(len(e.commits) for e in entries)} "
            f"commit(s) in {len(entries)} section(s)"
        )
        return ChangelogDocument(
            body=body,
            entries=entries,
            breaking_changes=breaking_changes,
        )

    def collect_entries(self, commits: List[ConventionalCommit]) -> List[ChangelogEntry]:
        """Group parsed commits into visible sections in table order."""
        entries = []
        for type_config in self.types:
            if type_config.get("hidden", False):
                continue
            matching = [c for c in commits if c.type == type_config["type"]]
            if matching:
                entries.append(ChangelogEntry(
                    type=type_config["type"],
                    section=type_config["section"],
                    commits=matching,
                ))
        return entries

    def render(
        self,
        entries: List[ChangelogEntry],
        breaking_changes: List[str],
        heading: str = ""
    ) -> str:
        """Render entries through the release notes template.

        Returns:
            Markdown body, without leading/trailing blank lines
        """
        context = {
            "has_heading": bool(heading),
            "heading": heading,
            "has_breaking_changes": bool(breaking_changes),
            "breaking_section": config.BREAKING_CHANGES_SECTION,
            "breaking_changes": [{"text": note} for note in breaking_changes],
            "sections": [
                {
                    "section": entry.section,
                    "lines": [{"text": self.format_commit(c)} for c in entry.commits],
                }
                for entry in entries
            ],
        }

        template_path = self.template_dir / "release_notes.mustache"
        rendered = self.renderer.render(template_path.read_text(), context)
        # Collapse blank runs left by skipped sections
        return re.sub(r"\n{3,}", "\n\n", rendered).strip()

    @staticmethod
    def format_commit(commit: ConventionalCommit) -> str:
        """Format a commit as a bullet line (without the leading '* ')."""
        text = commit.description
        if commit.scope:
            text = f"**{commit.scope}:** {text}"
        if commit.sha:
            text = f"{text} ({commit.sha[:SHORT_SHA_LENGTH]})"
        return text

    def _parse_history(self, history: Iterable[HistoryItem]) -> List[ConventionalCommit]:
        """Consume the history and parse every conventional commit in it."""
        commits = []
        try:
            for item in history:
                if isinstance(item, tuple):
                    sha, message = item
                else:
                    sha, message = "", item
                commit = parse_commit(message, sha=sha)
                if commit is None:
                    logger.debug(f"Skipping non-conventional commit {sha[:SHORT_SHA_LENGTH]}")
                    continue
                commits.append(commit)
        except (GitOperationsError, OSError) as e:
            raise ChangelogSourceError(f"Failed to read commit history: {e}")
        return commits

    def _collect_breaking_changes(self, commits: List[ConventionalCommit]) -> List[str]:
        """Breaking notes of commits whose type has a visible section."""
        visible = {t["type"] for t in self.types if not t.get("hidden", False)}
        notes = []
        for commit in commits:
            if not commit.breaking or commit.type not in visible:
                continue
            note = commit.breaking_note or commit.description
            if commit.scope:
                note = f"**{commit.scope}:** {note}"
            notes.append(note)
        return notes
