# blog_api/cli.py
"""
Admin provisioning and local serving.

    blog-api init-db
    blog-api create-admin --email admin@example.com --name Admin
    blog-api serve --port 8000
"""
from __future__ import annotations

import logging

import click

from blog_api.config import load_settings
from blog_api.database import Database
from blog_api.models.admin import Admin
from blog_api.security import hash_password

logger = logging.getLogger(__name__)


def create_admin(database: Database, *, email: str, name: str, password: str) -> Admin:
    """Insert an administrator, or reset name/password if the email exists."""
    with database.session() as db:
        admin = db.query(Admin).filter(Admin.email == email).first()
        if admin is None:
            admin = Admin(email=email, username=name, password_hash=hash_password(password), role="admin")
            db.add(admin)
            logger.info("Created admin %s", email)
        else:
            admin.username = name
            admin.password_hash = hash_password(password)
            logger.info("Updated admin %s", email)
        db.commit()
        db.refresh(admin)
        return admin


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = settings


@cli.command("init-db")
@click.pass_obj
def cli_init_db(settings) -> None:
    """Create tables without running migrations."""
    database = Database(settings.database_url)
    try:
        database.create_all()
    finally:
        database.dispose()
    click.secho("Tables created.", fg="green")


@cli.command("create-admin")
@click.option("--email", required=True, help="Login email (matched exactly)")
@click.option("--name", required=True, help="Display name")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.pass_obj
def cli_create_admin(settings, email: str, name: str, password: str) -> None:
    """Create or update an administrator account."""
    if not password:
        raise click.BadParameter("must not be empty", param_hint="--password")

    database = Database(settings.database_url)
    try:
        admin = create_admin(database, email=email.strip(), name=name.strip(), password=password)
    finally:
        database.dispose()
    click.secho(f"Admin {admin.email} ready (id={admin.id}).", fg="green")


@cli.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, type=int, show_default=True)
@click.option("--reload", is_flag=True)
def cli_serve(host: str, port: int, reload: bool) -> None:
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run("blog_api.main:create_app", factory=True, host=host, port=port, reload=reload)


main = cli

if __name__ == "__main__":
    cli()
