"""
Database Initialization Package
CLI commands and helpers for creating tables and loading the sample fleet
"""

from .init_db import init_database, reset_database
from .sample_data import SAMPLE_FLEET, create_admin_user, create_sample_fleet

__all__ = [
    'init_database',
    'reset_database',
    'SAMPLE_FLEET',
    'create_admin_user',
    'create_sample_fleet',
]
