import sys

import click

from helpdesk.core.config import settings
from helpdesk.core.database import SessionLocal, init_db
from helpdesk.core.logging import configure_logging
from helpdesk.core.security import get_password_hash
from helpdesk.services import user_store


@click.command()
@click.argument("username")
@click.argument("password")
@click.argument("display_name", required=False)
def create_admin(username, password, display_name):
    """Create a local user that can log in with USERNAME and PASSWORD.

    Usage:
        helpdesk-create-admin admin s3cret "Administrator"
    """
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    init_db()
    db = SessionLocal()
    try:
        user, created = user_store.create_if_absent(
            db,
            username=username,
            password_hash=get_password_hash(password),
            display_name=display_name or username,
        )
    finally:
        db.close()
    if not created:
        click.echo(f"User {username} already exists (id {user.id})", err=True)
        sys.exit(1)
    click.echo(f"Created user id {user.id}")


if __name__ == "__main__":
    create_admin()
