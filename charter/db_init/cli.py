"""
Flask CLI Commands for Database Management
Run with: flask charter init, flask charter seed
"""

import click
from flask.cli import with_appcontext

from charter.db_init.init_db import init_database, reset_database
from charter.db_init.sample_data import create_admin_user, create_sample_fleet


@click.group()
def charter_commands():
    """Database management commands"""
    pass


@charter_commands.command('init')
@click.option('--sample-data', is_flag=True, help='Also load the sample fleet and admin account')
@with_appcontext
def init_db_command(sample_data):
    """Create database tables"""
    init_database(with_sample_data=sample_data)
    click.echo('Database initialized.')


@charter_commands.command('seed')
@click.option('--admin-email', default='admin@example.com', show_default=True)
@click.option('--admin-password', default='ChangeMe123', show_default=True)
@with_appcontext
def seed_command(admin_email, admin_password):
    """Insert an admin user and the sample fleet"""
    _, created_admin = create_admin_user(admin_email, admin_password)
    created = create_sample_fleet()
    click.echo(f"Admin {'created' if created_admin else 'already exists'}: {admin_email}")
    click.echo(f"Added {created} fleet resource(s).")


@charter_commands.command('reset')
@click.confirmation_option(prompt='This will delete all data. Are you sure?')
@with_appcontext
def reset_db_command():
    """Drop and recreate all tables"""
    reset_database()
    click.echo('Database reset.')


def register_commands(app):
    """Register CLI commands with the Flask app"""
    app.cli.add_command(charter_commands, name='charter')
