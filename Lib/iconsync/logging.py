import logging
import os
import sys

from rich.logging import RichHandler

from iconsync.constants import ENV_GH_TOKEN, ENV_NUGET_TOKEN
from iconsync.utils import redact

LOG_FORMAT = "%(message)s"

SECRET_VARIABLES = (ENV_NUGET_TOKEN, ENV_GH_TOKEN)


class SecretFilter(logging.Filter):
    """Masks the registry and push tokens in every formatted record."""

    def filter(self, record):
        secrets = [os.environ.get(name) for name in SECRET_VARIABLES]
        if any(secrets):
            record.msg = redact(record.getMessage(), *secrets)
            record.args = None
        return True


def setup_logging(args, name) -> logging.Logger:
    """Route iconsync's records through rich.

    Unless run with `python -m` or --show-tracebacks, records from other
    loggers (GitPython is verbose at DEBUG) are dropped and uncaught
    exceptions are reduced to a single fatal line for the scheduler's log.
    """
    user_mode = name != "__main__" and not getattr(args, "show_tracebacks", False)

    handler = RichHandler(show_path=False, rich_tracebacks=not user_mode)
    handler.addFilter(SecretFilter())
    if user_mode:
        handler.addFilter(logging.Filter("iconsync"))

    logging.basicConfig(
        level=args.log_level,
        format=LOG_FORMAT,
        datefmt="[%X]",
        handlers=[handler],
    )
    log = logging.getLogger("iconsync")

    if user_mode:

        def excepthook(exc_type, value, traceback):
            if issubclass(exc_type, KeyboardInterrupt):
                sys.__excepthook__(exc_type, value, traceback)
                return
            log.fatal(f"{exc_type.__name__}: {value}")

        sys.excepthook = excepthook

    return log
