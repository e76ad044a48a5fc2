import logging
import os

from ruleset_reconcile.utils import config

RULESET_RECONCILE_CONFIG = "RULESET_RECONCILE_CONFIG"
RULESET_RECONCILE_LOG_LEVEL = "RULESET_RECONCILE_LOG_LEVEL"

LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def log_fmt(dry_run: bool | None = None) -> str:
    log_fmt = (
        "[%(asctime)s] [%(levelname)s] [DRY-RUN] "
        if dry_run
        else "[%(asctime)s] [%(levelname)s] "
    )

    log_fmt += "[%(filename)s:%(funcName)s:%(lineno)d] - %(message)s"

    return log_fmt


def init_env(
    log_level: str | None = None,
    config_file: str | None = None,
    dry_run: bool | None = None,
) -> None:
    # store env configs in environment variables so that a compatible
    # environment can be set up again by running `init_env()` with no parameters.
    if log_level:
        os.environ[RULESET_RECONCILE_LOG_LEVEL] = log_level
    if config_file:
        os.environ[RULESET_RECONCILE_CONFIG] = config_file

    logging.basicConfig(
        format=log_fmt(dry_run=dry_run),
        datefmt=LOG_DATEFMT,
        level=getattr(logging, os.environ.get(RULESET_RECONCILE_LOG_LEVEL, "INFO")),
    )

    # the config file is optional, github settings can come from the environment
    config_file = os.environ.get(RULESET_RECONCILE_CONFIG)
    if config_file:
        config.init_from_toml(config_file)
    else:
        logging.debug("no config file specified, using environment only")
        config.init({})
