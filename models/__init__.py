"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and shared enums (RunStatus, FailurePolicy)
    availability: Which products each collection listed, per locale and run
    description: Localized product descriptions
    image: Localized product image descriptors
    harvest_run: Harvest execution tracking

Database Schema:
    All models inherit from the Base declarative class. Data tables are
    written only through bulk upserts; rows are never deleted by the
    harvester.

Usage:
    from models import GameAvailability, GameDescription, GameImage, HarvestRun
    from models.base import RunStatus
"""

from models.base import Base, RunStatus, FailurePolicy
from models.availability import GameAvailability
from models.description import GameDescription
from models.image import GameImage
from models.harvest_run import HarvestRun

__all__ = [
    "Base",
    "RunStatus",
    "FailurePolicy",
    "GameAvailability",
    "GameDescription",
    "GameImage",
    "HarvestRun",
]
