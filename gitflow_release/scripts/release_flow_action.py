#!/usr/bin/env python3
"""
Entry point of the gitflow release action.

Reads the action inputs and the triggering event from the runner
environment, runs the release flow once and reports the outcome.

Usage:
    python -m gitflow_release.scripts.release_flow_action [--workspace DIR]
"""

import argparse
import logging
import os
import sys
import uuid
from typing import Dict, List, Mapping, Optional

from .events import load_event
from .flow_config import ReleaseFlowConfig
from .flow_engine import FlowResult, Promote, ReleaseFlowEngine
from .git_operations import GitOperations
from .github_client import GitHubClient
from .repository_gateway import RepositoryGateway

logger = logging.getLogger(__name__)


def configure_logging(environ: Mapping[str, str]) -> None:
    """Log to stderr; DEBUG when the workflow runs with debug logging enabled."""
    level = logging.DEBUG if environ.get("RUNNER_DEBUG") == "1" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_engine(flow_config: ReleaseFlowConfig, workspace: str) -> ReleaseFlowEngine:
    """Wire both actors, the working copy and the engine for one run."""
    gateway = RepositoryGateway(
        primary=GitHubClient(flow_config.repo, flow_config.token),
        automation=GitHubClient(flow_config.repo, flow_config.bot_token),
        git=GitOperations(workspace),
    )
    return ReleaseFlowEngine(flow_config, gateway)


def result_outputs(result: FlowResult) -> Dict[str, str]:
    """Step outputs describing the run."""
    outputs = {
        "outcome": "skipped" if result.skipped else "completed",
        "version": "",
        "pull_request_number": "",
        "release_url": "",
    }
    decision = result.decision
    if isinstance(decision, Promote):
        outputs["version"] = decision.version
    if result.pull_request:
        outputs["pull_request_number"] = str(result.pull_request.number)
    if result.release:
        outputs["version"] = result.release.tag_name
        outputs["release_url"] = result.release.html_url
    return outputs


def write_outputs(outputs: Dict[str, str], path: Optional[str]) -> None:
    """Append outputs to GITHUB_OUTPUT, if the runner provides it."""
    if not path:
        return
    with open(path, "a") as f:
        for key, value in outputs.items():
            # Use distinct delimiter to handle potential multiline values
            delimiter = f"EOF-{uuid.uuid4()}"
            f.write(f"{key}<<{delimiter}\n{value}\n{delimiter}\n")


def main(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Promote gitflow release and hotfix branches")
    parser.add_argument(
        "--workspace",
        help="Checked-out repository (defaults to GITHUB_WORKSPACE or the current directory)",
        default=None,
    )
    args = parser.parse_args(argv)
    environ = os.environ if environ is None else environ

    configure_logging(environ)

    try:
        flow_config = ReleaseFlowConfig.from_environ(environ)
        event = load_event(
            environ.get("GITHUB_EVENT_NAME", ""),
            environ.get("GITHUB_EVENT_PATH", ""),
        )
        logger.debug(f"Event: {event}")

        workspace = args.workspace or environ.get("GITHUB_WORKSPACE") or os.getcwd()
        engine = build_engine(flow_config, workspace)
        result = engine.run(event)
        write_outputs(result_outputs(result), environ.get("GITHUB_OUTPUT"))
    except Exception as e:
        logger.debug("Run failed", exc_info=True)
        print(f"::error::{e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
