"""Some utilities for the command line interface."""
import contextlib
import functools
from typing import Any, Callable, Iterator, TypeVar

import click
import psycopg2

from pgroles.common import ConfigError, setup_logger
from pgroles.config import Config, SecretsConfig
from pgroles.database.connection import connection_provider
from pgroles.roles import RoleAdmin

F = TypeVar("F", bound=Callable[..., Any])


def make_config_decorator(config_type: type) -> Callable[[F], F]:
    """Like :py:func:`click.make_pass_decorator` with ``ensure=True``.

    An unusable configuration is reported as error message instead of a
    traceback.
    """
    def decorator(f: F) -> F:
        def new_func(*args: Any, **kwargs: Any) -> Any:
            ctx = click.get_current_context()
            try:
                obj = ctx.ensure_object(config_type)
            except ConfigError as e:
                raise click.ClickException(str(e)) from e
            return ctx.invoke(f, obj, *args, **kwargs)
        return functools.update_wrapper(new_func, f)  # type: ignore[return-value]
    return decorator


pass_config = make_config_decorator(Config)
pass_secrets = make_config_decorator(SecretsConfig)


def make_role_admin(config: Config, secrets: SecretsConfig,
                    dbuser: str = None) -> RoleAdmin:
    """Set up logging and create a RoleAdmin connecting as configured.

    The connection is opened on first use only.
    """
    log_dir = config["LOG_DIR"]
    logger = setup_logger(
        "pgroles", log_dir / "pgroles.log" if log_dir else None,
        config["LOG_LEVEL"], syslog_level=config["SYSLOG_LEVEL"],
        console_log_level=config["CONSOLE_LOG_LEVEL"])
    provider = connection_provider(config, secrets, dbuser)
    return RoleAdmin(provider=provider, logger=logger.getChild("roles"))


@contextlib.contextmanager
def reported_errors() -> Iterator[None]:
    """Turn errors of the database or the configuration into a readable message."""
    try:
        yield
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    except psycopg2.Error as e:
        message = e.pgerror or str(e)
        raise click.ClickException(message.strip()) from e
