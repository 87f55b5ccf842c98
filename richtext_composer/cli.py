# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""Command line interface for the composer core."""

import json
import logging
from typing import Any, Dict, List

import click

from .composer import ComposerSession
from .config import ComposerConfig
from .errors import ComposerError, SerializationError
from .model.document import Document
from .serializer.html import HtmlSerializer, clean_up_content

logger = logging.getLogger(__name__)


def load_document(data: Any) -> Document:
    """Read document JSON, either bare or wrapped as {"document": {...}}"""
    if isinstance(data, dict) and "document" in data:
        data = data["document"]
    if not isinstance(data, dict) or data.get("object", "document") != "document":
        raise SerializationError("Expected a document object or {\"document\": {...}}")
    return Document.from_dict(data)


###############################################################################
# CLI Interface

@click.group()
@click.option("--log-level", default="WARNING", help="Logging level")
def main(log_level: str):
    """Rich-text composer tools"""

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@main.command()
@click.argument("file", type=click.File("r"), default="-")
@click.option("--no-markdown", is_flag=True, default=False, help="Disable markdown conversion")
def compose(file, no_markdown: bool):
    """Type a plain-text draft line by line, commit it and print the message"""
    session = ComposerSession(ComposerConfig(markdown_disabled=no_markdown))
    for line in file.read().rstrip("\n").split("\n"):
        session.type_block(line)

    sent: List[Dict[str, Any]] = []

    def send(message: Dict[str, Any]) -> bool:
        sent.append(message)
        return True

    session.commit(send)
    logger.info(f"Composed message from {file.name}")
    click.echo(json.dumps(sent[0], indent=2))


@main.command("parse-html")
@click.argument("file", type=click.File("r"), default="-")
def parse_html(file):
    """Read HTML and print the document JSON"""
    document = HtmlSerializer().deserialize(file.read())
    click.echo(json.dumps(document.to_dict(), indent=2))


@main.command()
@click.argument("file", type=click.File("r"), default="-")
@click.option("--mention-tag", default=None, help="Element name used for mentions")
def render(file, mention_tag):
    """Read document JSON and print the cleaned HTML"""
    config = ComposerConfig(mention_tag=mention_tag) if mention_tag else ComposerConfig()
    try:
        document = load_document(json.load(file))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON: {e}")
    except ComposerError as e:
        raise click.ClickException(str(e))
    serializer = HtmlSerializer(mention_tag=config.mention_tag,
                                default_code_language=config.default_code_language)
    click.echo(clean_up_content(serializer.serialize(document)))


if __name__ == "__main__":
    main()
