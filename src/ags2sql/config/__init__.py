"""
Configuration module for the ags2sql converter.
"""

from .settings import (
    Config,
    ConfigurationError,
    DatabaseCredentials,
    ServiceCredentials,
    ServiceEndpoint,
)

__all__ = [
    'Config',
    'ConfigurationError',
    'ServiceCredentials',
    'DatabaseCredentials',
    'ServiceEndpoint'
]
