"""Tests for the interactive prefix browser."""

from typing import List, Optional, Sequence

import pytest

from oss_uploader.browser import (
    BrowseAction,
    BrowseChoice,
    browse_directories,
    build_choices,
    parent_prefix,
)
from oss_uploader.client import ListResult, ObjectInfo

TREE = {
    "": ListResult(prefixes=["static/", "docs/"], objects=[ObjectInfo("robots.txt", 24)]),
    "static/": ListResult(
        prefixes=["static/js/", "static/css/"],
        objects=[ObjectInfo("static/", 0), ObjectInfo("static/favicon.ico", 1024)],
    ),
    "static/js/": ListResult(objects=[ObjectInfo("static/js/app.js", 2048)]),
    "static/css/": ListResult(),
    "docs/": ListResult(),
}


class ScriptedSelect:
    """Answers prompts from a script of (action, value) pairs and records the messages."""

    def __init__(self, script: Sequence[tuple]) -> None:
        self.script = list(script)
        self.messages: List[str] = []
        self.offered: List[List[BrowseChoice]] = []

    def __call__(self, message: str, choices: Sequence[BrowseChoice]) -> Optional[BrowseChoice]:
        self.messages.append(message)
        self.offered.append(list(choices))
        action, value = self.script.pop(0)
        if action is None:
            return None
        for choice in choices:
            if choice.action is action and (value is None or choice.value == value):
                return choice
        raise AssertionError(f"No {action} choice with value {value!r} offered")


@pytest.fixture
def tree_client(mock_client):
    mock_client.list.side_effect = lambda prefix="", max_keys=1000, delimiter="": TREE[prefix]
    return mock_client


class TestParentPrefix:
    """Test parent_prefix."""

    @pytest.mark.parametrize(
        "prefix, expected",
        [
            ("static/js/", "static/"),
            ("static/", ""),
            ("", ""),
            ("a/b/c/", "a/b/"),
        ],
    )
    def test_parent_prefix(self, prefix, expected):
        assert parent_prefix(prefix) == expected


class TestBuildChoices:
    """Test build_choices."""

    def test_root_has_no_back_entry(self):
        choices = build_choices("", TREE[""])

        actions = [c.action for c in choices]
        assert BrowseAction.BACK not in actions
        assert actions[:2] == [BrowseAction.SELECT, BrowseAction.EXIT]
        assert choices[0].value == ""
        assert "(/)" in choices[0].label

    def test_nested_level_has_back_entry(self):
        choices = build_choices("static/", TREE["static/"])

        assert [c.action for c in choices[:3]] == [
            BrowseAction.SELECT,
            BrowseAction.BACK,
            BrowseAction.EXIT,
        ]
        assert choices[1].value == ""

    def test_directories_are_shown_relative(self):
        choices = build_choices("static/", TREE["static/"])

        dirs = [c for c in choices if c.action is BrowseAction.ENTER]
        assert [c.label for c in dirs] == ["📁 js/", "📁 css/"]
        assert [c.value for c in dirs] == ["static/js/", "static/css/"]

    def test_directory_marker_is_not_a_file(self):
        choices = build_choices("static/", TREE["static/"])

        files = [c for c in choices if c.action is BrowseAction.FILE]
        assert [c.value for c in files] == ["static/favicon.ico"]
        assert files[0].label == "📄 favicon.ico (1 KB)"

    def test_preview_is_capped(self):
        listing = ListResult(objects=[ObjectInfo(f"f{i}.txt", 1) for i in range(15)])

        choices = build_choices("", listing, preview_limit=10)

        files = [c for c in choices if c.action is BrowseAction.FILE]
        assert len(files) == 11
        assert files[-1].label.strip() == "... +5 more"
        assert files[-1].value is None


class TestBrowseDirectories:
    """Test browse_directories with a scripted prompt."""

    def test_select_root(self, tree_client):
        select = ScriptedSelect([(BrowseAction.SELECT, None)])

        assert browse_directories(tree_client, select=select) == ""
        assert "oss://test-bucket/" in select.messages[0]

    def test_enter_then_select(self, tree_client):
        select = ScriptedSelect(
            [
                (BrowseAction.ENTER, "static/"),
                (BrowseAction.ENTER, "static/js/"),
                (BrowseAction.SELECT, None),
            ]
        )

        assert browse_directories(tree_client, select=select) == "static/js/"
        assert "oss://test-bucket/static/js/" in select.messages[-1]

    def test_back_returns_to_parent(self, tree_client):
        select = ScriptedSelect(
            [
                (BrowseAction.ENTER, "static/"),
                (BrowseAction.BACK, None),
                (BrowseAction.ENTER, "docs/"),
                (BrowseAction.SELECT, None),
            ]
        )

        assert browse_directories(tree_client, select=select) == "docs/"

    def test_exit_returns_none(self, tree_client):
        select = ScriptedSelect([(BrowseAction.EXIT, None)])
        assert browse_directories(tree_client, select=select) is None

    def test_cancel_returns_none(self, tree_client):
        select = ScriptedSelect([(None, None)])
        assert browse_directories(tree_client, select=select) is None

    def test_choosing_a_file_stays_on_level(self, tree_client):
        select = ScriptedSelect([(BrowseAction.FILE, "robots.txt"), (BrowseAction.SELECT, None)])

        assert browse_directories(tree_client, select=select) == ""
        assert len(select.messages) == 2
        assert select.messages[0] == select.messages[1]

    def test_start_prefix_is_normalized(self, tree_client):
        select = ScriptedSelect([(BrowseAction.SELECT, None)])

        assert browse_directories(tree_client, start_prefix="/static", select=select) == "static/"
        tree_client.list.assert_called_with(prefix="static/", max_keys=1000, delimiter="/")

    def test_message_counts_entries(self, tree_client):
        select = ScriptedSelect([(BrowseAction.SELECT, None)])

        browse_directories(tree_client, select=select)

        assert "(2 dir(s), 1 file(s))" in select.messages[0]
