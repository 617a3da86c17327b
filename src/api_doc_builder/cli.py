"""CLI entry point for api-doc-builder."""

import importlib
import inspect
import logging
from pathlib import Path

import click

from api_doc_builder.config import DocsConfig, load_config
from api_doc_builder.docs.registry import DocRegistry
from api_doc_builder.emitter.apidoc import write_doc_source_files
from api_doc_builder.emitter.swagger import SwaggerEmitter
from api_doc_builder.errors import (
    ApiDocError,
    BadMethodCallError,
    MethodNotAllowedError,
    NoRoutesError,
    ProductionEnvironmentError,
    RequestValidationError,
    UserNotFoundError,
)
from api_doc_builder.walker import Application, RouteWalker


def load_application(app_path: str) -> Application:
    """Import an application given as `module:attribute`."""
    module_name, _, attribute = app_path.partition(":")
    if not module_name or not attribute:
        raise click.BadParameter("Use the form `module:attribute`.", param_hint="--app")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"Cannot import {module_name}: {e}", param_hint="--app") from e

    app = getattr(module, attribute, None)
    if app is None:
        raise click.BadParameter(f"{module_name} has no attribute {attribute}", param_hint="--app")

    # classes and factory functions are called to build the app
    if inspect.isclass(app) or inspect.isfunction(app):
        app = app()
    return app


def generate_docs(app: Application, config: DocsConfig, user_id: int) -> list[Path]:
    """Walk the app's API routes and write every documentation artifact."""
    if config.is_production() or str(getattr(app, "environment", "")).lower() == "production":
        raise ProductionEnvironmentError()

    user = app.find_user(user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    if not app.routes():
        raise NoRoutesError()

    registry = DocRegistry()
    registry.seed_default_headers()

    walker = RouteWalker(app, registry, config, user=user)
    calls = walker.walk()
    click.echo("")
    click.echo(f"API Doc Builder found {len(calls)} defined APICalls.")

    written = write_doc_source_files(registry.all_calls(), config.source_docs_dir, config.source_extension)
    click.echo(f"File(s) generated at {config.source_docs_dir}")

    emitter = SwaggerEmitter(registry, config)
    for flavor in ("api", "postman"):
        for path in emitter.write(flavor, config.docs_dir):
            click.echo(f"Generated File - {path}")
            written.append(path)

    return written


@click.group()
def main():
    """API Doc Builder — generate apiDoc, Swagger and Postman files from documented routes."""
    pass


@main.command()
@click.option("--app", "app_path", required=True, help="Application to document, as `module:attribute`.")
@click.option("--user-id", default=None, type=int, help="User ID to access the API as. Defaults to the configured user.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML config file.")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def generate(app_path: str, user_id: int | None, config_path: Path | None, verbose: bool):
    """Generate API documentation."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")

    try:
        config = load_config(config_path)
        app = load_application(app_path)
        generate_docs(app, config, user_id if user_id is not None else config.default_user_id)
    except ApiDocError as e:
        raise click.ClickException(str(e)) from e
    except (BadMethodCallError, MethodNotAllowedError) as e:
        # already reported by the walker
        raise SystemExit(1) from e
    except RequestValidationError as e:
        click.secho("ValidationException detected. Have you documented this API?", fg="red", err=True)
        raise click.ClickException(e.merged_message()) from e

    click.echo("")
    click.echo("To complete, run `apidoc -i resources/docs -o public_html/docs/api`")
