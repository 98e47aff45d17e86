from __future__ import annotations

import traceback
from dataclasses import dataclass


class PacklerError(RuntimeError):
    """Base error"""


@dataclass(frozen=True, slots=True)
class ItemFailure:
    """
    A normalized record for one item dropped from a batch
    (an image, a stylesheet entry point, an uploaded object) or for a whole stage.
    """

    item: str
    exc_type: str
    message: str
    traceback: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "item": self.item,
            "exc_type": self.exc_type,
            "message": self.message,
        }


def item_failure_from_exc(item: str, exc: BaseException) -> ItemFailure:
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return ItemFailure(
        item=item,
        exc_type=type(exc).__name__,
        message=str(exc),
        traceback=tb,
    )


class ConfigurationError(PacklerError):
    """Missing or invalid configuration (e.g. no upload bucket)"""


class InputError(PacklerError):
    """
    Non-retryable: a configured input does not exist or cannot be used
    """


class EntryPointMissing(InputError):
    def __init__(self, entrypoint: str) -> None:
        super().__init__(f"Entrypoint '{entrypoint}' does not exist")
        self.entrypoint = entrypoint


class ExternalToolError(PacklerError):
    """External tool could not be provisioned, spawned, or returned a bad status"""


class FilesystemError(PacklerError):
    """Read/write/copy/remove failure on the local filesystem"""


class SerializationError(PacklerError):
    """Manifest could not be encoded or written"""


class UploadError(PacklerError):
    """Object storage rejected or failed an upload"""


class LockError(PacklerError):
    """Another instance holds the output root"""


class ComponentNotImplemented(PacklerError):
    def __init__(self, component: str, action: str) -> None:
        super().__init__(f"{component.capitalize()} {action} is not implemented yet")
        self.component = component
        self.action = action
