# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""Composer session configuration."""

import logging
import re
from dataclasses import dataclass, fields
from typing import Any, Dict

from .constants import DEFAULT_CODE_LANGUAGE, DEFAULT_MENTION_TAG, MAX_HEADING_LEVEL

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass
class ComposerConfig:
    """
    Settings of one composer session

    Args:
        markdown_disabled: Skip markdown conversion and preview decorations
        mention_tag: Element name mentions are written as
        default_code_language: Language of code blocks opened without one
        max_heading_level: Deepest heading; longer "#" markers are capped to it
    """
    markdown_disabled: bool = False
    mention_tag: str = DEFAULT_MENTION_TAG
    default_code_language: str = DEFAULT_CODE_LANGUAGE
    max_heading_level: int = MAX_HEADING_LEVEL

    def __post_init__(self):
        self.max_heading_level = max(1, min(int(self.max_heading_level), MAX_HEADING_LEVEL))
        if not self.default_code_language:
            self.default_code_language = DEFAULT_CODE_LANGUAGE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComposerConfig":
        """
        Build a config from a dict with camelCase or snake_case keys

        Unknown keys are logged and ignored.
        """
        names = {field.name for field in fields(cls)}
        values = {}
        for key, value in data.items():
            name = _CAMEL_RE.sub("_", key).lower()
            if name in names:
                values[name] = value
            else:
                logger.debug(f"Ignoring unknown config key {key!r}")
        return cls(**values)
