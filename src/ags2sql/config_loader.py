"""
Job file loading for the convert command.

A job file is a small YAML document naming the service, the destination
database and the tables to convert, so repeated runs do not need long
command lines:

    url: https://gis.example.com/arcgis/rest/services/Parcels/MapServer
    token_url: https://gis.example.com/arcgis/tokens/generateToken
    db: postgresql://gis@localhost/staging
    tables:
      - GISDATA.Owner.Parcels
      - GISDATA.Owner.Addresses

Credentials stay in the environment and are not read from job files.
"""

from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from .config.settings import ConfigurationError
from .domain.models import ConversionJob


def load_job_file(job_path: Union[str, Path]) -> ConversionJob:
    """
    Load a job definition from YAML.

    Args:
        job_path: Path to the YAML job file

    Returns:
        ConversionJob with the file's values

    Raises:
        ConfigurationError: If the file is missing, not YAML, or has
            unknown or mistyped keys
    """
    job_path = Path(job_path)
    if not job_path.exists():
        raise ConfigurationError(f"Job file not found: {job_path}")

    try:
        with open(job_path, encoding='utf-8') as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {job_path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Job file {job_path} must contain a mapping")

    try:
        return ConversionJob.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid job file {job_path}: {e}") from e


def resolve_job(
    job_path: Optional[Union[str, Path]] = None,
    url: Optional[str] = None,
    token_url: Optional[str] = None,
    db: Optional[str] = None,
    tables: Optional[list[str]] = None,
    verify_ssl: Optional[bool] = None,
) -> ConversionJob:
    """
    Merge a job file with command-line values; command-line values win.

    Raises:
        ConfigurationError: If url, db or the table list is still missing
    """
    job = load_job_file(job_path) if job_path else ConversionJob()
    job = job.merged_with(url=url, token_url=token_url, db=db, tables=tables, verify_ssl=verify_ssl)

    missing = []
    if not job.url:
        missing.append("--url")
    if not job.db:
        missing.append("--db")
    if not job.tables:
        missing.append("--table")
    if missing:
        raise ConfigurationError(f"Missing required option(s): {', '.join(missing)}")

    return job
