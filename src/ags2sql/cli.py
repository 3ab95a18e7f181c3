import logging
import traceback
from pathlib import Path
from typing import Annotated, List, Optional

import typer

from .config.settings import Config, ConfigurationError
from .config_loader import resolve_job
from .database import DatabaseExecutor, connect_database
from .pipeline.publish import TableConverter
from .pipeline.source import FeatureServiceClient
from .types import ConversionError
from .utils import setup_logging

app = typer.Typer(help="ArcGIS feature service tables -> SQL database tables")


def _fail(message: str, verbose: bool) -> typer.Exit:
    logging.error(message)
    if verbose:
        logging.error(f"Full traceback: {traceback.format_exc()}")
    return typer.Exit(1)


@app.command("convert")
def convert(
    table: Annotated[Optional[List[str]], typer.Option("--table", "-t", help="Service table name to convert (repeatable, converted in order)")] = None,
    url: Annotated[Optional[str], typer.Option("--url", help="ArcGIS server URL ending with /MapServer or /FeatureServer")] = None,
    db: Annotated[Optional[str], typer.Option("--db", help="Destination database URL, e.g. postgresql://host/db or duckdb:///out.db")] = None,
    token_url: Annotated[Optional[str], typer.Option("--token-url", help="ArcGIS token URL, required when AGS_USERNAME/AGS_PASSWORD are set")] = None,
    no_ssl_verify: Annotated[bool, typer.Option("--no-ssl-verify", help="Do not verify TLS certificates")] = False,
    job: Annotated[Optional[Path], typer.Option("--job", "-j", help="YAML job file; command-line options override it")] = None,
    env_file: Annotated[Optional[Path], typer.Option("--env-file", help="Explicit .env file with credentials")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable detailed logging output")] = False,
    log_to_file: Annotated[bool, typer.Option("--log-to-file", help="Create timestamped log files")] = False,
):
    """
    Convert feature service tables into database tables.

    Each table is dropped and recreated from the service's field list, then
    filled page by page. Credentials come from the environment: AGS_USERNAME
    and AGS_PASSWORD for the service, DB_USERNAME and DB_PASSWORD (or PGUSER
    and PGPASSWORD) for the database.

    Examples:
        ags2sql convert --url https://host/arcgis/rest/services/Kadaster/MapServer \\
            --db postgresql://localhost/gis -t KADASTER.Percelen
        ags2sql convert -j jobs/kadaster.yml --no-ssl-verify
    """
    setup_logging(verbose, "convert", log_to_file)

    executor: Optional[DatabaseExecutor] = None
    try:
        run_job = resolve_job(
            job,
            url=url,
            token_url=token_url,
            db=db,
            tables=table,
            verify_ssl=False if no_ssl_verify else None,
        )
        config = Config(env_file=env_file)
        session = config.create_session(run_job.url, run_job.token_url, run_job.verify_ssl)

        client = FeatureServiceClient(session)
        service_info = client.fetch_service_info()

        executor = connect_database(run_job.db, config.database.username, config.database.password)
        converter = TableConverter(client, executor, service_info)
        results = converter.convert(run_job.tables)

    except ConfigurationError as e:
        raise _fail(f"Configuration error: {e}", verbose) from e
    except ConversionError as e:
        raise _fail(f"Conversion failed: {e}", verbose) from e
    finally:
        if executor is not None:
            executor.close()

    for result in results:
        if result.created:
            typer.echo(
                f"{result.name} -> {result.destination}: {result.features} rows "
                f"({result.pages} pages, {result.duration_s:.1f}s)"
            )
        else:
            typer.echo(f"{result.name}: no features, {result.destination} not touched")


@app.command("list-tables")
def list_tables(
    url: Annotated[str, typer.Option("--url", help="ArcGIS server URL ending with /MapServer or /FeatureServer")],
    token_url: Annotated[Optional[str], typer.Option("--token-url", help="ArcGIS token URL, required when AGS_USERNAME/AGS_PASSWORD are set")] = None,
    no_ssl_verify: Annotated[bool, typer.Option("--no-ssl-verify", help="Do not verify TLS certificates")] = False,
    env_file: Annotated[Optional[Path], typer.Option("--env-file", help="Explicit .env file with credentials")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable detailed logging output")] = False,
):
    """
    List the tables a service exposes, with the ids used for querying.

    Examples:
        ags2sql list-tables --url https://host/arcgis/rest/services/Kadaster/MapServer
    """
    setup_logging(verbose, "list-tables")

    try:
        config = Config(env_file=env_file)
        session = config.create_session(url, token_url, verify_ssl=not no_ssl_verify)
        service_info = FeatureServiceClient(session).fetch_service_info()
    except ConfigurationError as e:
        raise _fail(f"Configuration error: {e}", verbose) from e
    except ConversionError as e:
        raise _fail(f"Request failed: {e}", verbose) from e

    if not service_info.tables:
        typer.echo("Service exposes no tables")
        return

    for table in service_info.tables:
        typer.echo(f"{table.id:>5}  {table.name}")
    typer.echo(f"\nFound {len(service_info.tables)} tables")


@app.command("version")
def version():
    """Display version information."""
    from . import __version__
    typer.echo(f"ags2sql version: {__version__}")


if __name__ == "__main__":
    app()
