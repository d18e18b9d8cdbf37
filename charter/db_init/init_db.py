"""
Database Initialization
"""

from charter.extensions import db
from charter.db_init.sample_data import create_admin_user, create_sample_fleet


def init_database(with_sample_data=False):
    """Create all tables, optionally loading the sample fleet and admin account"""
    db.create_all()
    if with_sample_data:
        create_admin_user()
        create_sample_fleet()


def reset_database():
    db.drop_all()
    db.create_all()
