"""Resolution of worker entry points."""

import importlib
import typing as t

from ..domain.exceptions import InvalidWorkerError
from ..domain.pool_config import WorkerEntry


def resolve_entrypoint(entry: WorkerEntry) -> t.Callable[[], t.Any]:
    """Turn a worker entry into something that can be called.

    Callables are returned unchanged. Strings must have the form
    ``"package.module:attribute"``; dotted attributes are followed.

    Raises:
        InvalidWorkerError: If the reference cannot be imported or the
            result is not callable.
    """
    if isinstance(entry, str):
        entry = _import_reference(entry)

    if not callable(entry):
        raise InvalidWorkerError(f"Worker entry {entry!r} is not callable")
    return entry


def _import_reference(reference: str) -> t.Any:
    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise InvalidWorkerError(
            f"Worker entry {reference!r} is not a 'module:attribute' reference"
        )

    try:
        target: t.Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise InvalidWorkerError(
            f"Cannot import module {module_name!r} for worker entry {reference!r}"
        ) from exc

    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise InvalidWorkerError(
                f"Worker entry {reference!r} has no attribute {part!r}"
            ) from exc
    return target
