# shop_admin/cli.py
import os

import click
from flask import Flask
from flask.cli import with_appcontext

from shop_admin.extensions import db


@click.command("seed")
@click.option("--no-catalog", is_flag=True, default=False, help="Skip the sample categories and products")
@with_appcontext
def seed_command(no_catalog: bool):
    """Create the default admin, representative, settings and sample catalog."""
    from shop_admin.services.seed_service import run_all

    db.create_all()
    result = run_all(with_catalog=not no_catalog)
    click.echo(f"Seed done: {result['settings']} settings, {result['products']} products created")


@click.command("create-admin")
@click.option("--username", default=lambda: os.environ.get("ADMIN_USERNAME", "admin"),
              show_default=True, help="Admin username")
@click.option("--password", default=lambda: os.environ.get("ADMIN_PASSWORD"),
              help="Password (prompted for when missing)")
@click.option("--full-name", default="Admin Kullanici", show_default=True, help="Display name")
@click.option("--force", is_flag=True, default=False,
              help="Reset password and role when the user already exists")
@with_appcontext
def create_admin_command(username: str, password: str | None, full_name: str, force: bool):
    """Create or reset an ADMIN account."""
    from shop_admin.models.user import AdminUser, ROLE_ADMIN

    db.create_all()

    if not password:
        password = click.prompt("Password", hide_input=True, confirmation_prompt=True)

    username = username.strip().lower()
    user = AdminUser.query.filter_by(username=username).first()
    if user and not force:
        click.echo(f"User '{username}' already exists. Use --force to reset the password.")
        return

    if not user:
        user = AdminUser(username=username)
        db.session.add(user)

    user.full_name = full_name
    user.role = ROLE_ADMIN
    user.is_active = True
    user.set_password(password)

    db.session.commit()
    click.echo(f"Admin ready: {username}")


def register_cli(app: Flask) -> None:
    app.cli.add_command(seed_command)
    app.cli.add_command(create_admin_command)
