"""
Build information generation.

Captures the current git revision (shortest unambiguous form) and the build
time, and writes them as JSON:

    {
      "revision": "abc1234",
      "build_time": 1700000000
    }

The pipeline is Resolver -> Extractor -> Assembler -> Writer. Each stage
raises a BuildInfoError subclass on failure and nothing is written unless
every stage succeeds.
"""

import json
import logging
import os
import stat
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import pygit2

from .errors import (
    HeadUnresolvable,
    NoCommitsYet,
    OutputPathInvalid,
    RepositoryNotFound,
    RepositoryOpenFailed,
    SerializationFailed,
    ShorteningFailed,
    WriteFailed,
)

logger = logging.getLogger(__name__)

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

DEFAULT_OUTPUT_NAME = "build_info.json"

PathLike = Union[str, "os.PathLike[str]"]
Observer = Callable[[str, Dict[str, Any]], None]
Clock = Callable[[], int]


@dataclass(frozen=True)
class BuildInfo:
    """Snapshot of build provenance."""

    # Shortest unambiguous prefix of the HEAD commit id
    revision: str

    # Unix epoch seconds at generation time
    build_time: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'revision': self.revision,
            'build_time': self.build_time,
        }


def epoch_seconds() -> int:
    """Current wall-clock time as Unix epoch seconds."""
    return int(datetime.now(timezone.utc).timestamp())


# Stage events -> (log level, message template)
_EVENT_LOG_FORMATS = {
    'start': (logging.INFO, "Generating build info..."),
    'cwd': (TRACE, "Current working directory: {cwd}"),
    'output': (logging.DEBUG, "Output file: {path}"),
    'repository': (TRACE, "Repository opened at {path}"),
    'revision': (TRACE, "Short revision for {commit}: {revision}"),
    'assembled': (TRACE, "Build info created: {info}"),
    'written': (logging.INFO, "Build info successfully written to {path}"),
}


def log_observer(event: str, fields: Dict[str, Any]) -> None:
    """Observer that forwards pipeline events to this module's logger."""
    level, template = _EVENT_LOG_FORMATS.get(event, (logging.DEBUG, event))
    if logger.isEnabledFor(level):
        logger.log(level, template.format(**fields))


def _emit(observer: Optional[Observer], event: str, **fields: Any) -> None:
    if observer is not None:
        observer(event, fields)


def resolve_repository(start: Optional[PathLike] = None) -> pygit2.Repository:
    """
    Locate and open the git repository enclosing ``start``.

    ``start`` defaults to the current working directory. Discovery walks up
    through parent directories the same way ``git`` itself does.

    Raises:
        RepositoryNotFound: nothing discoverable from ``start`` up to the root
        RepositoryOpenFailed: a repository was found but could not be opened
    """
    try:
        start_path = Path(start) if start is not None else Path.cwd()
        start_path = start_path.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise RepositoryNotFound(f"Cannot search for a repository from {start}") from e

    try:
        repo_path = pygit2.discover_repository(str(start_path))
    except (pygit2.GitError, OSError) as e:
        raise RepositoryOpenFailed(f"Failed to discover repository from {start_path}") from e

    if repo_path is None:
        raise RepositoryNotFound(f"No git repository found at or above {start_path}")

    try:
        return pygit2.Repository(repo_path)
    except (pygit2.GitError, OSError) as e:
        raise RepositoryOpenFailed(f"Failed to open repository at {repo_path}") from e


def _head_commit(repo: pygit2.Repository) -> pygit2.Commit:
    try:
        unborn = repo.head_is_unborn
    except pygit2.GitError as e:
        raise HeadUnresolvable("Failed to read HEAD") from e
    if unborn:
        raise NoCommitsYet("HEAD points to a branch with no commits")

    try:
        return repo.head.peel(pygit2.Commit)
    except (pygit2.GitError, KeyError, ValueError) as e:
        raise HeadUnresolvable("Failed to resolve HEAD to a commit") from e


def extract_revision(repo: pygit2.Repository) -> str:
    """
    Return the short revision of HEAD.

    The short form is libgit2's minimal unambiguous prefix (honouring
    ``core.abbrev``), never a fixed truncation.
    """
    return _short_revision(_head_commit(repo))


def _short_revision(commit: pygit2.Commit) -> str:
    try:
        revision = commit.short_id
    except pygit2.GitError as e:
        raise ShorteningFailed(f"Failed to shorten revision {commit.id}") from e

    if not revision:
        raise ShorteningFailed(f"Empty short revision for {commit.id}")
    return revision


def assemble_build_info(revision: str, clock: Clock = epoch_seconds) -> BuildInfo:
    """Combine a revision with the current time. Reads the clock once."""
    return BuildInfo(revision=revision, build_time=int(clock()))


def resolve_output_path(out: Optional[PathLike] = None,
                        cwd: Optional[PathLike] = None) -> Path:
    """
    Resolve the artifact destination to an absolute path.

    Defaults to ``build_info.json`` in ``cwd``. Relative paths are anchored at
    ``cwd``. The filesystem is not consulted, so the file need not exist yet.
    """
    try:
        base = Path(cwd) if cwd is not None else Path.cwd()
        if out is None:
            path = base / DEFAULT_OUTPUT_NAME
        else:
            raw = os.fspath(out)
            if not raw:
                raise ValueError("output path is empty")
            if '\x00' in raw:
                raise ValueError("output path contains a NUL byte")
            path = Path(raw)
            if not path.is_absolute():
                path = base / path
        return Path(os.path.abspath(path))
    except (OSError, TypeError, ValueError) as e:
        raise OutputPathInvalid(f"Cannot resolve output path {out!r}") from e


def serialize_build_info(info: BuildInfo) -> str:
    """Render the record as pretty-printed JSON with stable key order."""
    try:
        return json.dumps(info.to_dict(), indent=2, ensure_ascii=False) + "\n"
    except (TypeError, ValueError) as e:
        raise SerializationFailed("Failed to serialize build info") from e


def _write_truncate(path: Path, content: str) -> None:
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)


def _write_atomic(path: Path, content: str) -> None:
    # Write through symlinks: replace the file the link points at, not the link
    if os.path.islink(path):
        path = Path(os.path.realpath(path))

    try:
        existing_mode = stat.S_IMODE(os.stat(path).st_mode) if path.is_file() else None
    except OSError:
        existing_mode = None

    # Temp file in the destination directory keeps os.replace on one filesystem
    tmp_name = path.parent / f".{path.name}.{uuid.uuid4().hex}.tmp"
    try:
        fd = os.open(tmp_name, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o666)
    except PermissionError:
        if existing_mode is None:
            raise
        # Directory is read-only but the file itself may still be writable
        _write_truncate(path, content)
        return

    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        if existing_mode is not None:
            os.chmod(tmp_name, existing_mode)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise


def write_build_info(info: BuildInfo, out: PathLike, atomic: bool = True) -> Path:
    """
    Serialize ``info`` and write it to ``out``, replacing any existing file.

    Parent directories are not created. With ``atomic`` the content goes to a
    temporary file that is renamed over the destination, so readers never see
    a partial file. A symlinked destination is written through to its target,
    an existing file keeps its mode, and a writable file in a read-only
    directory is truncated in place.

    Returns:
        The absolute path written.
    """
    path = Path(os.path.abspath(out))
    content = serialize_build_info(info)

    try:
        if atomic:
            _write_atomic(path, content)
        else:
            _write_truncate(path, content)
    except OSError as e:
        raise WriteFailed(f"Failed to write build info to {path}") from e

    return path


def generate_build_info(out: Optional[PathLike] = None,
                        *,
                        cwd: Optional[PathLike] = None,
                        clock: Clock = epoch_seconds,
                        atomic: bool = True,
                        observer: Optional[Observer] = None) -> BuildInfo:
    """
    Run the full pipeline and write the artifact.

    Args:
        out: Destination file. Defaults to ``<cwd>/build_info.json``.
        cwd: Directory to start repository discovery from and to anchor a
            relative ``out`` against. Defaults to the process working
            directory.
        clock: Epoch-seconds source, read exactly once.
        atomic: Write through a temporary file and rename.
        observer: Optional ``(event, fields)`` callback for stage tracing.

    Returns:
        The BuildInfo that was written.
    """
    _emit(observer, 'start')

    if cwd is None:
        try:
            cwd = Path.cwd()
        except OSError as e:
            raise OutputPathInvalid("Current working directory is unavailable") from e
    _emit(observer, 'cwd', cwd=cwd)

    # Resolved up front so a later chdir cannot move the artifact
    out_path = resolve_output_path(out, cwd=cwd)
    _emit(observer, 'output', path=out_path)

    repo = resolve_repository(cwd)
    _emit(observer, 'repository', path=repo.path)

    commit = _head_commit(repo)
    revision = _short_revision(commit)
    _emit(observer, 'revision', commit=commit.id, revision=revision)

    info = assemble_build_info(revision, clock=clock)
    _emit(observer, 'assembled', info=info)

    written = write_build_info(info, out_path, atomic=atomic)
    _emit(observer, 'written', path=written, info=info)

    return info
