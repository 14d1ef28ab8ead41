import functools
import gzip
import inspect
import logging
import logging.handlers
import os
import shutil
import sys
from gzip import GzipFile
from pathlib import Path
from typing import Callable, ParamSpec, TypeVar

from .config import settings

logger = logging.getLogger("rrf_filemanager")
logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)
formatter = logging.Formatter(
    "%(asctime)s %(levelname)s [%(module)s:%(funcName)s:%(lineno)d] %(message)s"
)


def rotator(source, dest):
    with open(source, "rb") as f_in:
        with gzip.open(dest + ".gz", "wb") as f_out:
            assert isinstance(f_out, GzipFile)
            shutil.copyfileobj(f_in, f_out)
    os.remove(source)


if settings.logs_dir is not None:
    logs_dir = Path(settings.logs_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_file_handler = logging.handlers.TimedRotatingFileHandler(
        logs_dir / "rrf_filemanager.log", when="midnight"
    )
    log_file_handler.setFormatter(formatter)
    log_file_handler.rotator = rotator
    logger.addHandler(log_file_handler)

log_stream_handler = logging.StreamHandler(sys.stdout)
log_stream_handler.setFormatter(formatter)
logger.addHandler(log_stream_handler)


P = ParamSpec("P")
R = TypeVar("R")


def log_exception(
    prefix: str = "",
    default_return: R | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator that logs any exception raised by the wrapped function and
    returns `default_return` instead.

    Meant for outermost boundaries only (CLI commands), never for library
    calls, which must propagate their errors to the caller.

    The prefix may reference the wrapped function's parameters by name,
    e.g. `@log_exception("Delete {path}", default_return=1)`.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        sig = inspect.signature(func)

        def render_prefix(args: tuple, kwargs: dict) -> str:
            if not prefix:
                return ""
            try:
                bound = sig.bind(*args, **kwargs)
                bound.apply_defaults()
                return f"{prefix.format_map(bound.arguments)}: "
            except (TypeError, KeyError, ValueError):
                return f"{prefix}: "

        def report(e: Exception, args: tuple, kwargs: dict) -> None:
            logger.error(
                f"{render_prefix(args, kwargs)}{type(e).__name__}: {e}",
                exc_info=True,
                stacklevel=3,  # report -> wrapper -> user code
            )

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    report(e, args, kwargs)
                    return default_return  # type: ignore[return-value]

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                report(e, args, kwargs)
                return default_return  # type: ignore[return-value]

        return sync_wrapper

    return decorator
