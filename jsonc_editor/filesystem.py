"""Filesystem helpers and config storage for jsonc-editor."""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import TextIO

from .config import EditorConfig
from .constants import CONFIG_EXTENSIONS, DEFAULT_MAX_FILE_SIZE
from .exceptions import StorageError
from .models import ConfigScope

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_ENV_VAR = "JSONC_EDITOR_MAX_FILE_SIZE"


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Resolve the maximum allowed config file size.

    Args:
        default: Fallback value in bytes when the environment variable is unset.

    Returns:
        int: Maximum allowed file size in bytes.

    Raises:
        ValueError: If the environment value is not a positive integer.

    Examples:
        os.environ["JSONC_EDITOR_MAX_FILE_SIZE"] = "204800"
        limit = get_max_file_size(default=102400)
    """
    env_value = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if env_value is None:
        return default

    try:
        max_size = int(env_value)
    except ValueError as error:
        error_message = (
            f"Invalid value for {MAX_FILE_SIZE_ENV_VAR}: {env_value} (expected positive integer)"
        )
        raise ValueError(error_message) from error

    if max_size <= 0:
        error_message = f"{MAX_FILE_SIZE_ENV_VAR} must be a positive integer, got {max_size}."
        raise ValueError(error_message)

    return max_size


def resolve_config_path(
    scope: ConfigScope,
    config: EditorConfig,
    cwd: Path | None = None,
    home: Path | None = None,
) -> Path:
    """Return the config file location for a scope.

    Args:
        scope: Local (working directory) or global (user config directory).
        config: Configuration providing the file name and global directory.
        cwd: Working directory; defaults to `Path.cwd()`.
        home: Home directory used to expand ``~``; defaults to `Path.home()`.

    Returns:
        Path: Absolute path of the config file, which may not exist yet.

    Examples:
        resolve_config_path(ConfigScope.GLOBAL, EditorConfig())
        # ~/.config/opencode/opencode.json
    """
    if scope is ConfigScope.LOCAL:
        return (cwd or Path.cwd()).resolve() / config.file_name

    directory = Path(config.global_dir)
    if home is not None and config.global_dir.startswith("~"):
        directory = home / config.global_dir[1:].lstrip("/\\")
    return directory.expanduser() / config.file_name


def normalize_filepath(raw_path: str) -> Path:
    """Resolve and validate a user-supplied config filepath.

    Args:
        raw_path: Path to a JSON or JSONC file (absolute or relative).

    Returns:
        Path: Absolute path to the file. The file itself may not exist yet, but
            it must not be a directory.

    Raises:
        ValueError: If the path names a directory or uses an unsupported
            extension.

    Examples:
        normalize_filepath("~/.config/opencode/opencode.json")
    """
    path = Path(raw_path).expanduser().resolve()

    if path.is_dir():
        error_message = f"{path} is a directory."
        raise ValueError(error_message)

    if path.suffix.lower() not in CONFIG_EXTENSIONS:
        error_message = f"{path} is not a JSON file.\n"
        error_message += f"Supported extensions are: {', '.join(CONFIG_EXTENSIONS)}"
        raise ValueError(error_message)

    return path


def collect_file_stat(filepath: Path) -> os.stat_result:
    """Return stat information for a regular file.

    Args:
        filepath: Path to the file.

    Returns:
        os.stat_result: File metadata.

    Raises:
        StorageError: If the path is inaccessible or not a regular file.
    """
    try:
        stat_result = os.stat(filepath)
    except OSError as error:
        error_message = f"Error accessing {filepath}: {error}"
        raise StorageError(error_message) from error

    if not stat.S_ISREG(stat_result.st_mode):
        error_message = f"{filepath} is not a regular file."
        raise StorageError(error_message)

    return stat_result


def enforce_file_size(stat_result: os.stat_result, max_size: int, filepath: Path):
    """Guard against files that exceed the configured maximum size.

    Raises:
        StorageError: If `stat_result.st_size` exceeds `max_size`.
    """
    if stat_result.st_size > max_size:
        error_message = f"{filepath} exceeds the maximum allowed size of {max_size} bytes."
        raise StorageError(error_message)


def ensure_file_unchanged(
    expected_stat: os.stat_result, current_stat: os.stat_result, filepath: Path
):
    """Detect changes between two filesystem snapshots.

    Args:
        expected_stat: Stat captured when the file was read.
        current_stat: Stat captured right before writing.
        filepath: Path to the file being monitored.

    Raises:
        StorageError: If inode, device, size, or modification time differ.
    """
    fingerprint_before = (
        getattr(expected_stat, "st_ino", None),
        getattr(expected_stat, "st_dev", None),
        expected_stat.st_size,
        expected_stat.st_mtime_ns,
    )
    fingerprint_after = (
        getattr(current_stat, "st_ino", None),
        getattr(current_stat, "st_dev", None),
        current_stat.st_size,
        current_stat.st_mtime_ns,
    )

    if fingerprint_before != fingerprint_after:
        error_message = f"{filepath} changed since it was read; refusing to overwrite."
        raise StorageError(error_message)


def safe_read(filepath: Path) -> TextIO:
    """Open a file for reading with consistent error handling.

    Raises:
        StorageError: If the path is missing, inaccessible, or not a file.

    Examples:
        with safe_read(Path("opencode.json")) as handle:
            text = handle.read()
    """
    try:
        return open(filepath, "r", encoding="UTF-8", newline="")
    except (
        FileNotFoundError,
        PermissionError,
        IsADirectoryError,
        NotADirectoryError,
    ) as error:
        error_message = f"Error accessing {filepath}: {error}"
        raise StorageError(error_message) from error


def write_atomic(
    filepath: Path,
    text: str,
    expected_stat: os.stat_result | None = None,
    warn: Callable[[str], None] | None = None,
):
    """Replace a file's content atomically.

    The text goes to a temporary file in the same directory which then
    replaces the target. Permissions and, where possible, ownership of an
    existing file are carried over.

    Args:
        filepath: File to write; parent directories are created when missing.
        text: Complete new file content.
        expected_stat: Stat captured when the file was read. When given, the
            write is refused if the file changed in the meantime.
        warn: Optional callback for non-fatal warnings.

    Raises:
        StorageError: If the file changed since `expected_stat` or cannot be
            written.
    """
    if expected_stat is not None:
        ensure_file_unchanged(expected_stat, collect_file_stat(filepath), filepath)

    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise StorageError(f"Cannot create {filepath.parent}: {error}") from error

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="UTF-8", newline="", delete=False, dir=filepath.parent
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            tmp_file.write(text)

            tmp_file.flush()
            os.fsync(tmp_file.fileno())

            if expected_stat is not None:
                os.chmod(tmp_file.name, stat.S_IMODE(expected_stat.st_mode))
                uid = getattr(expected_stat, "st_uid", None)
                gid = getattr(expected_stat, "st_gid", None)
                if uid is not None and gid is not None and hasattr(os, "chown"):
                    try:
                        os.chown(tmp_file.name, uid, gid)
                    except PermissionError:
                        if warn is not None:
                            warn(
                                f"Warning: Could not preserve file ownership for {filepath.name} "
                                "(requires elevated privileges)"
                            )
            else:
                os.chmod(tmp_file.name, 0o644)

        os.replace(temp_path, filepath)
    except OSError as error:
        raise StorageError(f"Error writing {filepath}: {error}") from error
    finally:
        if temp_path is not None:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                pass

    logger.debug("Wrote %d characters to %s", len(text), filepath)


class ConfigStore:
    """Read and write the local and global config files.

    Remembers the file stat seen by each `read` so that a later `write` of the
    same scope refuses to clobber changes made by someone else in between.

    Args:
        config: Configuration providing file locations and limits.
        cwd: Working directory for the local scope.
        home: Home directory for the global scope.
        paths: Explicit file per scope, overriding the resolved locations.

    Examples:
        store = ConfigStore(EditorConfig())
        text = store.read(ConfigScope.LOCAL)
        store.write(ConfigScope.LOCAL, toggle_line(text, 2, False))
    """

    def __init__(
        self,
        config: EditorConfig | None = None,
        cwd: Path | None = None,
        home: Path | None = None,
        paths: dict[ConfigScope, Path] | None = None,
    ):
        self.config = config or EditorConfig()
        self._cwd = cwd
        self._home = home
        self._paths = dict(paths or {})
        self._read_stats: dict[ConfigScope, os.stat_result | None] = {}

    def path(self, scope: ConfigScope) -> Path:
        if scope in self._paths:
            return self._paths[scope]
        return resolve_config_path(scope, self.config, cwd=self._cwd, home=self._home)

    def read(self, scope: ConfigScope) -> str:
        """Return the text of a scope's config file, or ``""`` when it does not exist.

        Raises:
            StorageError: If the file is too large, not a regular file, or not
                valid UTF-8.
        """
        filepath = self.path(scope)
        if not filepath.exists():
            self._read_stats[scope] = None
            return ""

        try:
            max_file_size = get_max_file_size(default=self.config.max_file_size)
        except ValueError as error:
            raise StorageError(str(error)) from error

        file_stat = collect_file_stat(filepath)
        enforce_file_size(file_stat, max_file_size, filepath)

        try:
            with safe_read(filepath) as handle:
                text = handle.read()
        except UnicodeDecodeError as error:
            error_message = f"Invalid UTF-8 sequence in {filepath}: {error}"
            raise StorageError(error_message) from error

        self._read_stats[scope] = file_stat
        return text

    def write(self, scope: ConfigScope, text: str, warn: Callable[[str], None] | None = None):
        """Persist `text` as the scope's config file.

        Raises:
            StorageError: If the file changed or appeared since the last `read`
                of this scope, or cannot be written.
        """
        filepath = self.path(scope)
        expected_stat = self._read_stats.get(scope)

        if expected_stat is None and scope in self._read_stats and filepath.exists():
            error_message = f"{filepath} was created since it was read; refusing to overwrite."
            raise StorageError(error_message)

        write_atomic(filepath, text, expected_stat=expected_stat, warn=warn)
        self._read_stats[scope] = collect_file_stat(filepath)
