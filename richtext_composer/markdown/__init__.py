# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

from .decorations import Decoration, compute_decorations
from .tokenizer import Token, tokenize
from .transformer import MarkdownTransformer

__all__ = ['Decoration', 'compute_decorations', 'Token', 'tokenize', 'MarkdownTransformer']
