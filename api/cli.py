"""
Maintenance commands, available through `flask --app api <command>`.
"""
import click

from models import storage
from models.user import User, ROLES
from utils.revocation import get_revocation_set
from utils.security import hash_password

# One demo account per role; password is "<role>" + suffix
DEMO_USERS = [
    ("Admin User", "admin@campus.edu", "admin", "Administration"),
    ("Dr. Sarah Johnson", "sarah.j@campus.edu", "faculty", "Computer Science"),
    ("Prof. Michael Chen", "michael.c@campus.edu", "faculty", "Engineering"),
    ("John Smith", "john.s@campus.edu", "student", "Computer Science"),
    ("Maria Garcia", "maria.g@campus.edu", "student", "Engineering"),
    ("David Lee", "david.l@campus.edu", "staff", "Library"),
    ("James Wilson", "james.w@campus.edu", "researcher", "Physics"),
]


def add_user(name: str, email: str, password: str, role: str, department: str | None = None) -> User | None:
    """Insert a user unless the email is taken. Returns the new user or None."""
    email = email.strip().lower()
    session = storage.get_session()
    if session.query(User).filter(User.email == email).first():
        return None
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        department=department,
    )
    storage.new(user)
    storage.save()
    return user


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create missing tables."""
        storage.reload(app.config["DATABASE_URL"])
        click.echo("Database initialised")

    @app.cli.command("seed-users")
    @click.option("--password-suffix", default="123", show_default=True,
                  help="Demo passwords are '<role><suffix>'.")
    def seed_users(password_suffix):
        """Insert the demo campus accounts, skipping existing emails."""
        created = 0
        for name, email, role, department in DEMO_USERS:
            if add_user(name, email, f"{role}{password_suffix}", role, department):
                created += 1
        click.echo(f"Created {created} user(s)")

    @app.cli.command("create-user")
    @click.argument("email")
    @click.option("--name", required=True)
    @click.option("--role", type=click.Choice(ROLES), default="student", show_default=True)
    @click.option("--department", default=None)
    @click.password_option()
    def create_user(email, name, role, department, password):
        """Create a single account."""
        if add_user(name, email, password, role, department) is None:
            raise click.ClickException(f"{email} is already registered")
        click.echo(f"Created {email} ({role})")

    @app.cli.command("purge-revoked")
    def purge_revoked():
        """Delete revocation entries whose tokens have expired."""
        removed = get_revocation_set(app).purge_expired()
        click.echo(f"Purged {removed} expired revocation entr{'y' if removed == 1 else 'ies'}")
