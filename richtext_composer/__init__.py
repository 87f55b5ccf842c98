# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Rich-text composer - incremental markdown to structure conversion, live
preview decorations and an HTML wire format for chat messages
"""

from .composer import ComposerEventType, ComposerSession
from .config import ComposerConfig
from .context import ComposerContext
from .errors import ComposerError, DocumentError, SerializationError
from .markdown import MarkdownTransformer, compute_decorations, tokenize
from .model import Document, Point, Range
from .serializer import HtmlSerializer, clean_up_content, deserialize_plain, serialize_plain

__version__ = "0.1.0"

__all__ = [
    "ComposerSession", "ComposerEventType", "ComposerConfig", "ComposerContext",
    "ComposerError", "DocumentError", "SerializationError",
    "MarkdownTransformer", "compute_decorations", "tokenize",
    "Document", "Point", "Range",
    "HtmlSerializer", "clean_up_content", "deserialize_plain", "serialize_plain",
]
