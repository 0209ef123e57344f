"""
Release flow engine for the gitflow release workflow.

Maps one inbound event to one decision and executes it:

    push release/2.3.0            → Promote(release/2.3.0 → master)
    merged PR release/2.3.0→master → Promote(release/2.3.0 → develop)
                                     + Finalize(tag 2.3.0, publish release)
    anything else                 → NoOp

Decisions are pure; all side effects go through the RepositoryGateway.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from . import config
from .branch_classifier import (
    ReleaseFlowError,
    branch_from_ref,
    classify,
    extract_version,
)
from .changelog_generator import ChangelogGenerator
from .events import OtherEvent, PullRequestMergedEvent, PushEvent, ReleaseEvent
from .flow_config import ReleaseFlowConfig
from .repository_gateway import PullRequestRef, ReleaseRecord, RepositoryGateway

logger = logging.getLogger(__name__)


class MalformedRefError(ReleaseFlowError):
    """Raised when a push ref does not resolve to a branch name."""
    pass


class UnrecognizedBranchError(ReleaseFlowError):
    """Raised when a pushed branch matches neither configured prefix."""
    pass


@dataclass(frozen=True)
class NoOp:
    """Nothing to do for this event. Not an error."""
    reason: str


@dataclass(frozen=True)
class Finalize:
    """Tag the merge commit and publish a release."""
    commit_sha: str
    version: str


@dataclass(frozen=True)
class Promote:
    """Open and approve a promotion PR; optionally finalize afterwards."""
    head: str
    base: str
    version: str
    finalize: Optional[Finalize] = None

    @property
    def title(self) -> str:
        return promotion_title(self.version)


FlowDecision = Union[NoOp, Promote, Finalize]


@dataclass
class FlowResult:
    """Outcome of one run."""
    decision: FlowDecision
    pull_request: Optional[PullRequestRef] = None
    release: Optional[ReleaseRecord] = None

    @property
    def skipped(self) -> bool:
        return isinstance(self.decision, NoOp)


def promotion_title(version: str) -> str:
    """Title of every promotion PR, for release and hotfix branches alike."""
    return config.PR_TITLE_TEMPLATE.format(version=version)


class ReleaseFlowEngine:
    """
    Decides and executes the release flow for one event.

    Example usage:
        engine = ReleaseFlowEngine(flow_config, gateway)
        result = engine.run(PushEvent(ref="refs/heads/release/2.3.0"))
    """

    def __init__(
        self,
        flow_config: ReleaseFlowConfig,
        gateway: Optional[RepositoryGateway] = None,
        changelog: Optional[ChangelogGenerator] = None
    ):
        """
        Initialize the engine.

        Args:
            flow_config: Branch names and prefixes for this run
            gateway: Gateway used by execute(); decide() does not need it
            changelog: Release notes generator (built from the config's
                       type table if not provided)
        """
        self.config = flow_config
        self.gateway = gateway
        self.changelog = changelog or ChangelogGenerator(types=flow_config.changelog_types)

    def decide(self, event: ReleaseEvent) -> FlowDecision:
        """
        Map an event to exactly one decision.

        Raises:
            MalformedRefError: Push ref has no branch name
            UnrecognizedBranchError: Pushed branch has no known prefix
            MalformedBranchError: Branch carries no version
        """
        if isinstance(event, PushEvent):
            return self._decide_push(event)
        if isinstance(event, PullRequestMergedEvent):
            return self._decide_pull_request(event)
        if isinstance(event, OtherEvent):
            return NoOp("unsupported event")
        raise TypeError(f"Unknown event type: {type(event).__name__}")

    def _decide_push(self, event: PushEvent) -> FlowDecision:
        branch_name = branch_from_ref(event.ref or "")
        if not branch_name:
            raise MalformedRefError(f"Can't parse branch name from '{event.ref}'")

        role = classify(branch_name, self.config.release_prefix, self.config.hotfix_prefix)
        if not role.is_promotable:
            raise UnrecognizedBranchError(
                f"Branch '{branch_name}' matches neither "
                f"'{self.config.release_prefix}' nor '{self.config.hotfix_prefix}'"
            )

        return Promote(
            head=branch_name,
            base=self.config.master_branch,
            version=extract_version(branch_name),
        )

    def _decide_pull_request(self, event: PullRequestMergedEvent) -> FlowDecision:
        if not event.merged:
            return NoOp("not merged")

        role = classify(event.head, self.config.release_prefix, self.config.hotfix_prefix)
        target = self.config.develop_branch if role.is_promotable else None
        if target is None or event.base != self.config.master_branch:
            return NoOp("base branch mismatch or unrecognized head prefix")

        if not event.merge_commit_sha:
            raise ReleaseFlowError(f"Merged pull request from '{event.head}' has no merge commit")

        version = extract_version(event.head)
        return Promote(
            head=event.head,
            base=target,
            version=version,
            finalize=Finalize(commit_sha=event.merge_commit_sha, version=version),
        )

    def execute(self, decision: FlowDecision) -> FlowResult:
        """
        Run the gateway calls for a decision, in order.

        Any failure aborts the remaining steps and propagates; nothing
        already created is rolled back.
        """
        if isinstance(decision, NoOp):
            logger.info(f"Skipping: {decision.reason}")
            return FlowResult(decision=decision)

        if self.gateway is None:
            raise ReleaseFlowError("No repository gateway configured")

        if isinstance(decision, Promote):
            pull_request = self._promote(decision)
            release = self._finalize(decision.finalize) if decision.finalize else None
            return FlowResult(decision=decision, pull_request=pull_request, release=release)

        if isinstance(decision, Finalize):
            return FlowResult(decision=decision, release=self._finalize(decision))

        raise TypeError(f"Unknown decision type: {type(decision).__name__}")

    def run(self, event: ReleaseEvent) -> FlowResult:
        """Decide and execute for one event."""
        decision = self.decide(event)
        logger.info(f"Decision: {decision}")
        return self.execute(decision)

    def _promote(self, decision: Promote) -> PullRequestRef:
        pull_request = self.gateway.create_pull_request(
            head=decision.head,
            base=decision.base,
            title=decision.title,
        )
        self.gateway.approve_pull_request(pull_request.number)
        return pull_request

    def _finalize(self, decision: Finalize) -> ReleaseRecord:
        last_tag = self.gateway.latest_tag(decision.commit_sha)
        logger.info(f"Generating release notes since {last_tag or 'the first commit'}")
        history = self.gateway.read_commit_history_since(last_tag, until=decision.commit_sha)
        document = self.changelog.generate(history, version=decision.version)

        # A release must reference an existing tag
        self.gateway.create_tag(decision.version, decision.commit_sha, message=decision.version)
        return self.gateway.create_release(
            tag_name=decision.version,
            name=decision.version,
            body=document.body,
            commit_sha=decision.commit_sha,
        )
