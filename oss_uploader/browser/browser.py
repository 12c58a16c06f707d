"""
Interactive prefix browser.

Walks the bucket one "directory" (common prefix) at a time so the user can
pick an upload target. Each step lists the sub-prefixes and a short preview
of the files at the current level, then asks what to do next.

Example usage:
    >>> from oss_uploader.browser import browse_directories
    >>> target = browse_directories(client, start_prefix="static/")
    >>> if target is not None:
    ...     print(f"Upload to: {target}")
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from prompt_toolkit.shortcuts import radiolist_dialog

from oss_uploader.client import ListResult, OSSClient
from oss_uploader.utils.formatting import format_bytes
from oss_uploader.utils.logging import get_logger

logger = get_logger(__name__)

# Files shown per level before collapsing into "+N more"
FILE_PREVIEW_LIMIT = 10

LIST_PAGE_SIZE = 1000


class BrowseAction(str, Enum):
    SELECT = "select"
    BACK = "back"
    EXIT = "exit"
    ENTER = "enter"
    FILE = "file"


@dataclass(frozen=True)
class BrowseChoice:
    """One entry in the selection prompt."""

    action: BrowseAction
    label: str
    value: Optional[str] = None


# select(message, choices) -> chosen entry, or None when the prompt was cancelled
SelectFn = Callable[[str, Sequence[BrowseChoice]], Optional[BrowseChoice]]


def normalize_prefix(prefix: Optional[str]) -> str:
    """Root is ""; every other prefix ends with exactly one "/"."""
    cleaned = (prefix or "").replace("\\", "/").strip("/")
    return f"{cleaned}/" if cleaned else ""


def parent_prefix(prefix: str) -> str:
    """
    Drop the last path segment.

    Example:
        >>> parent_prefix("static/js/")
        'static/'
        >>> parent_prefix("static/")
        ''
    """
    segments = [s for s in prefix.split("/") if s]
    return normalize_prefix("/".join(segments[:-1]))


def build_choices(
    prefix: str, listing: ListResult, preview_limit: int = FILE_PREVIEW_LIMIT
) -> List[BrowseChoice]:
    """Assemble the prompt entries for one level of the tree."""
    location = prefix or "/"
    choices = [BrowseChoice(BrowseAction.SELECT, f"✓ Use this directory ({location})", prefix)]
    if prefix:
        choices.append(BrowseChoice(BrowseAction.BACK, "⬆ ..", parent_prefix(prefix)))
    choices.append(BrowseChoice(BrowseAction.EXIT, "✗ Exit"))

    for sub_prefix in listing.prefixes:
        name = sub_prefix[len(prefix):] if sub_prefix.startswith(prefix) else sub_prefix
        choices.append(BrowseChoice(BrowseAction.ENTER, f"📁 {name}", sub_prefix))

    # The "directory marker" object equal to the prefix itself is not a file
    files = [obj for obj in listing.objects if obj.key != prefix]
    for obj in files[:preview_limit]:
        name = obj.key[len(prefix):]
        choices.append(
            BrowseChoice(BrowseAction.FILE, f"📄 {name} ({format_bytes(obj.size)})", obj.key)
        )
    if len(files) > preview_limit:
        choices.append(BrowseChoice(BrowseAction.FILE, f"   ... +{len(files) - preview_limit} more"))

    return choices


def prompt_select(message: str, choices: Sequence[BrowseChoice]) -> Optional[BrowseChoice]:
    """Full-screen radio list; returns None if the dialog is cancelled."""
    return radiolist_dialog(
        title="Browse OSS",
        text=message,
        values=[(choice, choice.label) for choice in choices],
    ).run()


def browse_directories(
    client: OSSClient,
    start_prefix: str = "",
    select: Optional[SelectFn] = None,
    preview_limit: int = FILE_PREVIEW_LIMIT,
) -> Optional[str]:
    """
    Let the user navigate prefixes and pick one.

    Args:
        client: OSS client used for listing
        start_prefix: Prefix to start at ("" for the bucket root)
        select: Prompt function (defaults to a prompt_toolkit dialog)
        preview_limit: Files listed per level before "+N more"

    Returns:
        The chosen prefix ("" for the root), or None if the user exited

    Raises:
        RemoteStorageError: If listing fails
    """
    select = select or prompt_select
    prefix = normalize_prefix(start_prefix)

    while True:
        listing = client.list(prefix=prefix, max_keys=LIST_PAGE_SIZE, delimiter="/")
        choices = build_choices(prefix, listing, preview_limit)
        message = (
            f"oss://{client.config.bucket}/{prefix}  "
            f"({len(listing.prefixes)} dir(s), {len(listing.objects)} file(s))"
        )

        choice = select(message, choices)
        if choice is None or choice.action is BrowseAction.EXIT:
            logger.debug("Browse cancelled")
            return None

        if choice.action is BrowseAction.SELECT:
            logger.debug(f"Selected prefix '{prefix}'")
            return prefix
        if choice.action is BrowseAction.BACK:
            prefix = parent_prefix(prefix)
        elif choice.action is BrowseAction.ENTER and choice.value is not None:
            prefix = normalize_prefix(choice.value)
        # FILE entries leave the state unchanged
