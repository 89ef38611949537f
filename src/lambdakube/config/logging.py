"""structlog configuration for lambdakube.

Everything goes to stderr; stdout is reserved for rendered manifests and
command results so ``lambdakube render | kubectl apply -f -`` stays clean.

Levels are set per lambdakube subsystem rather than globally:

- ``lambdakube.services.testing`` reports test progress (namespace created,
  job finished) at INFO, shown unless ``--quiet`` or ``--json`` is given.
- ``lambdakube.services.resolve`` (rule fired / skipped), the plugin manager,
  and ``lambdakube.infrastructure.kubectl`` (every kubectl command line) log
  at DEBUG, shown only with ``--verbose``.
- Third-party loggers stay at WARNING in every mode.

Resolution and test runs bind ``rule`` / ``test`` / ``namespace`` with
:func:`structlog.contextvars.bound_contextvars`; those keys are merged into
every record, including records from plain ``logging`` loggers.
"""

from __future__ import annotations

import logging
import sys

import structlog

ROOT_LOGGER = "lambdakube"
PROGRESS_LOGGERS = ("lambdakube.services.testing",)


def log_levels(*, verbose: bool = False, quiet: bool = False) -> dict[str, int]:
    """Logger name -> level for the given output flags.

    ``--verbose`` wins over ``--quiet``.
    """
    if verbose:
        return {ROOT_LOGGER: logging.DEBUG, **dict.fromkeys(PROGRESS_LOGGERS, logging.DEBUG)}
    if quiet:
        return {ROOT_LOGGER: logging.ERROR, **dict.fromkeys(PROGRESS_LOGGERS, logging.ERROR)}
    return {ROOT_LOGGER: logging.WARNING, **dict.fromkeys(PROGRESS_LOGGERS, logging.INFO)}


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_json: bool = False,
) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Args:
        verbose: Show rule resolution, plugin loading, and kubectl commands.
        quiet: Hide test progress; only errors are logged.
        log_json: One JSON object per line instead of console output. JSON
            lines carry an ISO timestamp; console lines do not.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]
    if log_json:
        pre_chain.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING)

    for name, level in log_levels(verbose=verbose, quiet=quiet).items():
        logging.getLogger(name).setLevel(level)
