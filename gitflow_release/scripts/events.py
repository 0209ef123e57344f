"""
Inbound repository events for the gitflow release workflow.

A run reacts to exactly one event. The event is read from the
runner environment (GITHUB_EVENT_NAME, GITHUB_EVENT_PATH) and turned
into one of PushEvent, PullRequestMergedEvent or OtherEvent.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from . import config


@dataclass(frozen=True)
class PushEvent:
    """A branch push; ref is the full git ref (e.g., "refs/heads/release/2.3.0")."""
    ref: str


@dataclass(frozen=True)
class PullRequestMergedEvent:
    """A pull_request event (closed or otherwise), with its merge state."""
    head: str
    base: str
    merged: bool
    merge_commit_sha: Optional[str] = None


@dataclass(frozen=True)
class OtherEvent:
    """Any event the workflow does not act on."""
    event_name: str


ReleaseEvent = Union[PushEvent, PullRequestMergedEvent, OtherEvent]


class EventPayloadError(Exception):
    """Raised when the event payload cannot be read or is missing fields."""
    pass


def parse_event(event_name: str, payload: Dict[str, Any]) -> ReleaseEvent:
    """
    Build a ReleaseEvent from the event name and its webhook payload.

    Args:
        event_name: Value of GITHUB_EVENT_NAME (e.g., "push")
        payload: Decoded webhook payload

    Returns:
        The matching ReleaseEvent variant

    Raises:
        EventPayloadError: If a push or pull_request payload lacks
            the fields the workflow needs
    """
    if event_name == config.EVENT_PUSH:
        ref = payload.get("ref")
        if ref is None:
            raise EventPayloadError("push payload has no 'ref'")
        return PushEvent(ref=ref)

    if event_name == config.EVENT_PULL_REQUEST:
        pr = payload.get("pull_request")
        if not isinstance(pr, dict):
            raise EventPayloadError("pull_request payload has no 'pull_request'")
        try:
            head = pr["head"]["ref"]
            base = pr["base"]["ref"]
        except (KeyError, TypeError) as e:
            raise EventPayloadError(f"pull_request payload is missing {e}")
        return PullRequestMergedEvent(
            head=head,
            base=base,
            merged=bool(pr.get("merged", False)),
            merge_commit_sha=pr.get("merge_commit_sha"),
        )

    return OtherEvent(event_name=event_name)


def load_event(event_name: str, event_path: str) -> ReleaseEvent:
    """
    Read the webhook payload from GITHUB_EVENT_PATH and parse it.

    Args:
        event_name: Value of GITHUB_EVENT_NAME
        event_path: Path to the JSON payload file

    Returns:
        Parsed ReleaseEvent
    """
    if event_name not in (config.EVENT_PUSH, config.EVENT_PULL_REQUEST):
        return OtherEvent(event_name=event_name)

    try:
        with open(event_path) as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise EventPayloadError(f"Failed to read event payload {event_path}: {e}")

    return parse_event(event_name, payload)
