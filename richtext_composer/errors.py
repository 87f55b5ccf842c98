# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""Exceptions raised by the composer core."""


class ComposerError(Exception):
    """Base class for composer errors"""


class DocumentError(ComposerError, ValueError):
    """Raised when a document operation addresses a missing node or gets a malformed spec"""


class SerializationError(ComposerError, ValueError):
    """Raised when a draft or payload cannot be read"""
