"""Slack integration: deploy message rendering and delivery."""
from __future__ import annotations

from .client import post_message
from .message import escape_mrkdwn, render_deploy_message

__all__ = ["post_message", "escape_mrkdwn", "render_deploy_message"]
