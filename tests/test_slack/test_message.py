"""Tests for Slack deploy message rendering."""
from __future__ import annotations

import pytest

from deploy_notifier.aggregate import CommitLine
from deploy_notifier.slack.message import escape_mrkdwn, render_deploy_message

COMPARE_URL = (
    "https://github.com/repos/ghost/repo/compare/"
    "7c68a71a87d12cc2404aed192840674af84f3df4...master"
)


@pytest.fixture()
def commit_line() -> CommitLine:
    return CommitLine(
        author_login="ghost",
        title="Fix <Foo/> & some other thing",
        url="https://example.org",
        sha="56b515000c090c0ba5f285c6e19f9451788413f1",
        short_sha="56b5150",
        relative_time="3 hours ago",
    )


class TestEscapeMrkdwn:
    def test_escapes_control_characters(self) -> None:
        assert escape_mrkdwn("Fix <Foo/> & some other thing") == "Fix &lt;Foo/&gt; &amp; some other thing"

    def test_ampersand_escaped_first(self) -> None:
        assert escape_mrkdwn("&lt;") == "&amp;lt;"

    def test_plain_text_untouched(self) -> None:
        assert escape_mrkdwn("nothing to see") == "nothing to see"


class TestRenderDeployMessage:
    def test_block_layout(self, commit_line: CommitLine) -> None:
        blocks = render_deploy_message("my-app", [commit_line], "v42", COMPARE_URL)
        assert [b["type"] for b in blocks] == ["section", "divider", "section", "divider", "context"]

    def test_matches_expected_payload(self, commit_line: CommitLine) -> None:
        blocks = render_deploy_message("", [commit_line], "heroku-release-id", COMPARE_URL)

        assert blocks == [
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": "Your changes have been released to "
                    "<https://dashboard.heroku.com/apps/|``> on Heroku.",
                },
            },
            {"type": "divider"},
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": "<https://example.org|Fix &lt;Foo/&gt; &amp; some other thing> `56b5150`\n"
                    "ghost committed 3 hours ago",
                },
            },
            {"type": "divider"},
            {
                "type": "context",
                "elements": [
                    {
                        "type": "mrkdwn",
                        "text": f"<{COMPARE_URL}|Compare diff> | "
                        "<https://dashboard.heroku.com/apps//activity/releases/heroku-release-id|Release log> | "
                        "<https://dashboard.heroku.com/apps/|Release activity> | heroku-release-id",
                    }
                ],
            },
        ]

    def test_commit_lines_joined_in_order(self, commit_line: CommitLine) -> None:
        second = CommitLine(
            author_login="ghost",
            title="Second change",
            url="https://example.org/2",
            sha="b" * 40,
            short_sha="bbbbbbb",
            relative_time="an hour ago",
        )
        blocks = render_deploy_message("my-app", [commit_line, second], "v42", COMPARE_URL)
        text = blocks[2]["text"]["text"]
        assert text.split("\n") == [
            "<https://example.org|Fix &lt;Foo/&gt; &amp; some other thing> `56b5150`",
            "ghost committed 3 hours ago",
            "<https://example.org/2|Second change> `bbbbbbb`",
            "ghost committed an hour ago",
        ]

    def test_author_login_escaped(self, commit_line: CommitLine) -> None:
        line = CommitLine(**{**commit_line.__dict__, "author_login": "<bot>"})
        blocks = render_deploy_message("my-app", [line], "v42", COMPARE_URL)
        assert "&lt;bot&gt; committed" in blocks[2]["text"]["text"]

    def test_app_name_in_intro_and_footer(self, commit_line: CommitLine) -> None:
        blocks = render_deploy_message("my-app", [commit_line], "v42", COMPARE_URL)
        assert blocks[0]["text"]["text"] == (
            "Your changes have been released to "
            "<https://dashboard.heroku.com/apps/my-app|`my-app`> on Heroku."
        )
        footer = blocks[4]["elements"][0]["text"]
        assert footer.split(" | ") == [
            f"<{COMPARE_URL}|Compare diff>",
            "<https://dashboard.heroku.com/apps/my-app/activity/releases/v42|Release log>",
            "<https://dashboard.heroku.com/apps/my-app|Release activity>",
            "v42",
        ]
