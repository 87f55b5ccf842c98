# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Per-session transient state

One ComposerContext belongs to one editor session and is passed explicitly
into every transformer and serializer call. It holds:

- the fence pointer: the block opening a code fence that has not been closed yet
- the list-run pointers: the first and last list-item blocks waiting to be wrapped
- the mention side channels, filled while serializing and drained on commit

Nothing here is process-wide, so two sessions never see each other's state.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class FencePointer:
    """An opening code fence waiting for its closing match"""
    key: str
    language: str = ""


@dataclass
class ListRun:
    """First and last list-item blocks of a run waiting to be wrapped in a list"""
    start: Optional[str] = None
    end: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.start is not None

    def extend(self, key: str) -> None:
        if self.start is None:
            self.start = key
        self.end = key

    def clear(self) -> None:
        self.start = None
        self.end = None


@dataclass
class ComposerContext:
    """Transient state of one editor session"""
    markdown_disabled: bool = False
    fence: Optional[FencePointer] = None
    list_run: ListRun = field(default_factory=ListRun)
    mentions: List[Dict[str, Any]] = field(default_factory=list)
    group_mentions: List[Dict[str, Any]] = field(default_factory=list)

    def clear_fence(self) -> None:
        if self.fence is not None:
            logger.debug(f"Clearing fence pointer on block {self.fence.key}")
        self.fence = None

    def drain_mentions(self) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        """
        Hand both mention channels over to the caller

        Both channels are cleared on every call, empty or not, so entries left
        by a serialize pass that never reached a commit cannot leak into the
        next message.

        Returns:
            (mentions, group_mentions), owned by the caller
        """
        mentions, group_mentions = self.mentions, self.group_mentions
        self.mentions = []
        self.group_mentions = []
        return mentions, group_mentions

    def reset(self) -> None:
        """Forget all transient state, keeping the configuration flag"""
        self.fence = None
        self.list_run.clear()
        self.mentions = []
        self.group_mentions = []
