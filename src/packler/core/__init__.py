from .config import PacklerConfig, Settings, load_settings
from .errors import (
    ComponentNotImplemented,
    ConfigurationError,
    EntryPointMissing,
    ExternalToolError,
    FilesystemError,
    InputError,
    ItemFailure,
    LockError,
    PacklerError,
    SerializationError,
    UploadError,
    item_failure_from_exc,
)
from .fs import (
    atomic_dir_swap,
    atomic_write_text,
    copy_file,
    ensure_parent,
    make_tmp_dir_for,
    move_by_copy,
    read_bytes,
    relpath_posix,
    remove_file,
    remove_tree,
)
from .hashing import content_hash, hash_hex, hashed_relative_path
from .json import atomic_write_json, read_json
from .lock import output_root_lock
from .logging import ILogger, bind, clear_bindings, configure_logging, get_logger
from .time import format_duration_ms, monotonic_ms, utc_now_iso

__all__ = [
    "PacklerConfig",
    "Settings",
    "load_settings",
    "PacklerError",
    "ConfigurationError",
    "InputError",
    "EntryPointMissing",
    "ExternalToolError",
    "FilesystemError",
    "SerializationError",
    "UploadError",
    "LockError",
    "ComponentNotImplemented",
    "ItemFailure",
    "item_failure_from_exc",
    "atomic_dir_swap",
    "atomic_write_text",
    "copy_file",
    "ensure_parent",
    "make_tmp_dir_for",
    "move_by_copy",
    "read_bytes",
    "relpath_posix",
    "remove_file",
    "remove_tree",
    "content_hash",
    "hash_hex",
    "hashed_relative_path",
    "atomic_write_json",
    "read_json",
    "output_root_lock",
    "ILogger",
    "bind",
    "clear_bindings",
    "configure_logging",
    "get_logger",
    "format_duration_ms",
    "monotonic_ms",
    "utc_now_iso",
]
