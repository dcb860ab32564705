"""Provide a command line interface for the administration of roles.

These are thin wrappers around :py:class:`pgroles.roles.RoleAdmin`, each
command issues a single statement in its own transaction.
"""
import pathlib
import sys

import click

from pgroles.cli.util import (
    reported_errors, make_role_admin, pass_config, pass_secrets,
)
from pgroles.config import DEFAULT_CONFIGPATH, Config, SecretsConfig, set_configpath


@click.group()
@click.option("--configpath", envvar="PGROLES_CONFIGPATH", default=DEFAULT_CONFIGPATH,
              type=pathlib.Path, show_default=True)
@click.option("--dbuser", help="Login role to connect as.", default=None,
              show_default="DB_USER from the config")
@click.pass_context
def cli(ctx: click.Context, configpath: pathlib.Path, dbuser: str) -> None:
    """Command line interface to manage PostgreSQL roles and their memberships.

    To change the connection settings, you can provide a custom path to your
    configuration file. This may also be done by setting the PGROLES_CONFIGPATH
    environment variable.
    """
    set_configpath(configpath)
    ctx.obj = dbuser


@cli.command(name="create")
@click.argument("role")
@click.option("--password", is_flag=True,
              help="Prompt for a password to store with the role.")
@click.pass_obj
@pass_secrets
@pass_config
def create_cmd(config: Config, secrets: SecretsConfig, dbuser: str, role: str,
               password: bool) -> None:
    """Create a role, to be used as user or group."""
    secret = None
    if password:
        secret = click.prompt("Password", hide_input=True,
                              confirmation_prompt=True)
    with reported_errors():
        if not make_role_admin(config, secrets, dbuser).create(
                role=role, password=secret):
            raise click.BadParameter(f"Invalid role name {role!r}.")
    click.echo(f"Created role {role}.")


@cli.command(name="drop")
@click.argument("role")
@click.pass_obj
@pass_secrets
@pass_config
def drop_cmd(config: Config, secrets: SecretsConfig, dbuser: str, role: str
             ) -> None:
    """Drop a role."""
    with reported_errors():
        if not make_role_admin(config, secrets, dbuser).drop(role=role):
            raise click.BadParameter(f"Invalid role name {role!r}.")
    click.echo(f"Dropped role {role}.")


@cli.command(name="add")
@click.argument("group")
@click.argument("member")
@click.pass_obj
@pass_secrets
@pass_config
def add_cmd(config: Config, secrets: SecretsConfig, dbuser: str, group: str,
            member: str) -> None:
    """Add MEMBER to GROUP."""
    with reported_errors():
        if not make_role_admin(config, secrets, dbuser).add(
                group=group, member=member):
            raise click.BadParameter("Invalid role name.")
    click.echo(f"Added {member} to {group}.")


@cli.command(name="remove")
@click.argument("group")
@click.argument("member")
@click.pass_obj
@pass_secrets
@pass_config
def remove_cmd(config: Config, secrets: SecretsConfig, dbuser: str, group: str,
               member: str) -> None:
    """Remove MEMBER from GROUP."""
    with reported_errors():
        if not make_role_admin(config, secrets, dbuser).remove(
                group=group, member=member):
            raise click.BadParameter("Invalid role name.")
    click.echo(f"Removed {member} from {group}.")


@cli.command(name="roles")
@click.argument("user")
@click.pass_obj
@pass_secrets
@pass_config
def roles_cmd(config: Config, secrets: SecretsConfig, dbuser: str, user: str
              ) -> None:
    """List all roles USER is a member of, including USER itself."""
    with reported_errors():
        roles = make_role_admin(config, secrets, dbuser).roles(user=user)
    for role in roles:
        click.echo(role)


@cli.command(name="member-of")
@click.argument("user")
@click.argument("group")
@click.pass_obj
@pass_secrets
@pass_config
def member_of_cmd(config: Config, secrets: SecretsConfig, dbuser: str, user: str,
                  group: str) -> None:
    """Check whether USER is a member of GROUP, possibly indirectly."""
    with reported_errors():
        is_member = make_role_admin(config, secrets, dbuser).member_of(
            user=user, group=group)
    click.echo("yes" if is_member else "no")
    if not is_member:
        sys.exit(1)


@cli.command(name="check-user")
@click.argument("user")
@click.password_option(confirmation_prompt=False)
@click.pass_obj
@pass_secrets
@pass_config
def check_user_cmd(config: Config, secrets: SecretsConfig, dbuser: str, user: str,
                   password: str) -> None:
    """Check the md5 password digest stored for USER.

    This only works for passwords stored with password_encryption set to md5.
    """
    with reported_errors():
        match = make_role_admin(config, secrets, dbuser).check_user(
            user=user, password=password)
    click.echo("ok" if match else "mismatch")
    if not match:
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
