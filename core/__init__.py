"""
Core utilities and configuration for the Game Pass harvester.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Async engine, session factory and connection check
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration

Usage:
    from core.config import settings
    from core.database import create_engine_and_sessions
    from core.exceptions import NetworkError, PreconditionError
    from core.logging import setup_logging

Example:
    setup_logging()
    engine, session_factory = create_engine_and_sessions(settings)
"""

__all__ = [
    "settings",
    "setup_logging",
    "create_engine_and_sessions",
    # Exceptions
    "HarvestError",
    "RetryableError",
    "NonRetryableError",
    "PreconditionError",
    "CatalogError",
    "CatalogRequestError",
    "CatalogResponseError",
    "NetworkError",
    "RateLimitError",
    "AuthenticationError",
    "ResourceNotFoundError",
    "LoadError",
    "DatabaseError",
    "UpsertError",
    "SetupError",
    "ConfigurationError",
    "ConnectionSetupError",
]
