"""Slack Block Kit message for a deploy notification."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

import jinja2

from ..aggregate import CommitLine

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def escape_mrkdwn(text: str) -> str:
    """Escape text for Slack mrkdwn.

    https://api.slack.com/reference/surfaces/formatting#escaping
    """
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(_TEMPLATE_DIR)),
        autoescape=False,
        undefined=jinja2.StrictUndefined,
    )
    env.filters["mrkdwn"] = escape_mrkdwn
    return env


_ENV = _environment()


def _mrkdwn(text: str) -> dict:
    return {"type": "mrkdwn", "text": text}


def render_deploy_message(
    app_name: str,
    commits: Sequence[CommitLine],
    release: str,
    compare_url: str,
) -> list[dict]:
    """Build the Block Kit blocks sent to one author.

    Args:
        app_name: Heroku app that was deployed.
        commits: The author's commit lines, in fetched order.
        release: Release identifier, e.g. ``v42``.
        compare_url: GitHub compare view for the deploy.

    Returns:
        Intro section, divider, commit section, divider and footer context.
    """
    intro = _ENV.get_template("intro.mrkdwn.j2").render(app_name=app_name)
    commit_text = _ENV.get_template("commits.mrkdwn.j2").render(commits=commits)
    footer = _ENV.get_template("footer.mrkdwn.j2").render(
        app_name=app_name,
        release=release,
        compare_url=compare_url,
    )
    return [
        {"type": "section", "text": _mrkdwn(intro)},
        {"type": "divider"},
        {"type": "section", "text": _mrkdwn(commit_text)},
        {"type": "divider"},
        {"type": "context", "elements": [_mrkdwn(footer)]},
    ]
