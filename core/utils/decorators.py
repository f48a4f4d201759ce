"""
Decorators that turn failures into log lines.

``suppress_exceptions`` guards calls whose failure must degrade to a
fallback value (a file probe, a shortcut press, a desktop keybinding
update). ``log_errors`` records the failure of a top-level operation with the
function name, then re-raises it or maps it to a return value such as a
process exit code.
"""
from typing import Callable, TypeVar, ParamSpec, Any, Optional, Tuple, Type
from functools import wraps
from core.logging.logger import get_logger

P = ParamSpec('P')
T = TypeVar('T')

logger = get_logger(__name__)


def _emit(log: Optional[Any], level: str, text: str) -> None:
    log = log or logger
    # Tracebacks only for errors; expected degradations stay one line
    getattr(log, level, log.error)(text, exc_info=(level == "error"))


def suppress_exceptions(
    logger_instance: Optional[Any] = None,
    message: str = "Operation failed",
    return_value: Any = None,
    log_level: str = "error",
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable[[Callable[P, T]], Callable[P, Optional[T]]]:
    """
    Log ``exceptions`` raised by the wrapped call and return ``return_value``.

    Exceptions outside ``exceptions`` propagate unchanged.

    Example:
        @suppress_exceptions(logger, "Existence check failed", return_value=False,
                             log_level="warning", exceptions=(OSError,))
        def exists(self, path: Path) -> bool:
            return Path(path).is_file()
    """
    def decorator(func: Callable[P, T]) -> Callable[P, Optional[T]]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except exceptions as e:
                _emit(logger_instance, log_level, f"{message}: {e}")
                return return_value
        return wrapper
    return decorator


def log_errors(
    logger_instance: Optional[Any] = None,
    message: str = "Error in {func_name}",
    log_level: str = "error",
    reraise: bool = True,
    return_value: Any = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Log a failure of the wrapped call with its function name.

    Args:
        message: Template; ``{func_name}`` is replaced with the function name
        reraise: Re-raise after logging; otherwise return ``return_value``
        return_value: Result on failure when not re-raising (e.g. exit code 1)
    """
    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                _emit(logger_instance, log_level, f"{message.format(func_name=func.__name__)}: {e}")
                if reraise:
                    raise
                return return_value
        return wrapper
    return decorator
