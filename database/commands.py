# File path: database/commands.py

import click

from database.models import db, User


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables (use `flask db upgrade` once migrations are in place)."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("create-admin")
    @click.option("--username", prompt=True)
    @click.option("--name", default=None)
    @click.password_option()
    def create_admin(username, name, password):
        """Create an admin user, or promote and reset an existing one."""
        user = User.query.filter_by(username=username).first()
        if user is None:
            user = User(username=username, name=name or username, role="admin")
            db.session.add(user)
        else:
            user.role = "admin"
            user.is_active = True
        user.set_password(password)
        db.session.commit()
        click.echo(f"Admin '{username}' ready.")
