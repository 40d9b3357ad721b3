"""CLI entry point for swagger-validator."""

import json
import logging
from pathlib import Path

import click

from swagger_validator.config import ConfigError, load_config
from swagger_validator.request import Request
from swagger_validator.schema.compiler import compile_documents
from swagger_validator.schema.errors import SchemaCompileError
from swagger_validator.schema.registry import Registry
from swagger_validator.validation.facade import validate as validate_request
from swagger_validator.validation.outcome import Ok, describe


def _collect_documents(doc_paths: tuple[Path, ...], config_path: Path | None) -> list[Path]:
    """Documents named on the command line, then those listed in the config."""
    documents = list(doc_paths)
    if config_path is not None:
        try:
            documents.extend(load_config(config_path).documents)
        except ConfigError as e:
            raise click.ClickException(str(e))
    if not documents:
        raise click.UsageError("No description documents given.")
    return documents


def _compile(documents: list[Path]) -> Registry:
    try:
        return compile_documents(documents)
    except SchemaCompileError as e:
        raise click.ClickException(str(e))


def _parse_query(pairs: tuple[str, ...]) -> str:
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected NAME=VALUE, got {pair!r}", param_hint="--query")
    return "&".join(pairs)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """Swagger Validator: validate HTTP requests against Swagger 2.0 documents."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@main.command()
@click.argument("doc_paths", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="Validator config file listing documents.")
def check(doc_paths: tuple[Path, ...], config_path: Path | None):
    """Compile description documents and list their operations."""
    documents = _collect_documents(doc_paths, config_path)
    click.echo(f"Compiling {len(documents)} document(s)...")
    registry = _compile(documents)
    click.echo(f"Found {len(registry)} operations.")
    for operation in registry:
        click.echo(f"  {operation.method.upper()} {operation.base_path or ''}{operation.path_template}")


@main.command()
@click.argument("doc_paths", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="Validator config file listing documents.")
@click.option("-X", "--method", default="GET", help="HTTP method of the request.")
@click.option("--path", "url_path", required=True, help="Request path, optionally with a query string.")
@click.option("-q", "--query", "query", multiple=True, help="Query parameter as NAME=VALUE; repeatable.")
@click.option("-d", "--body", default=None, help="JSON request body.")
def validate(
    doc_paths: tuple[Path, ...],
    config_path: Path | None,
    method: str,
    url_path: str,
    query: tuple[str, ...],
    body: str | None,
):
    """Validate a single request and print the outcome as JSON."""
    registry = _compile(_collect_documents(doc_paths, config_path))

    extra = _parse_query(query)
    if extra:
        url_path = f"{url_path}{'&' if '?' in url_path else '?'}{extra}"

    payload = None
    if body is not None:
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"not valid JSON: {e}", param_hint="--body")

    outcome = validate_request(registry, Request.from_url(method, url_path, body=payload))
    click.echo(json.dumps(describe(outcome)))
    if not isinstance(outcome, Ok):
        raise SystemExit(1)
