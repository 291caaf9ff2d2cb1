"""Archive entry builders and output sinks.

The archive format is chosen from the target file's extension. Each format
provides a builder that turns a relative entry name and a source file into
an entry descriptor, and a sink that appends entries to an open archive.
Only files are ever packed; directories appear implicitly through entry
names. Symbolic links are stored as link entries and never followed.
"""

import logging
import os
import shutil
import stat
import tarfile
import time
import zipfile
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import PurePosixPath
from types import TracebackType

from sheaf.core.errors import ConfigurationError, TraversalIOError
from sheaf.core.locations import File

logger = logging.getLogger(__name__)

ArchiveEntry = zipfile.ZipInfo | tarfile.TarInfo
EntryBuilder = Callable[[str, File], ArchiveEntry]

_ZIP_EXTENSIONS = frozenset({"zip", "jar"})

# extension -> tarfile write mode
_TAR_MODES = {
    "tar": "w",
    "tar.gz": "w:gz",
    "tgz": "w:gz",
    "tar.bz2": "w:bz2",
    "tar.xz": "w:xz",
}


def _is_link(file: File) -> bool:
    return file.path.is_symlink()


def zip_entry(relative_name: str, file: File) -> zipfile.ZipInfo:
    """Describe ``file`` as a deflated zip entry named ``relative_name``.

    A symbolic link becomes an entry whose mode bits mark it as a link and
    whose content is the link target.
    """
    if not _is_link(file):
        info = zipfile.ZipInfo.from_file(file.path, relative_name)
        info.compress_type = zipfile.ZIP_DEFLATED
        return info

    attributes = file.path.lstat()
    info = zipfile.ZipInfo(relative_name, time.localtime(attributes.st_mtime)[:6])
    info.create_system = 3  # unix, so external_attr carries st_mode
    info.external_attr = (attributes.st_mode & 0xFFFF) << 16
    info.compress_type = zipfile.ZIP_STORED
    return info


def tar_entry(relative_name: str, file: File) -> tarfile.TarInfo:
    """Describe ``file`` as a regular or symlink tar member named ``relative_name``."""
    attributes = file.path.lstat()
    info = tarfile.TarInfo(relative_name)
    info.mtime = int(attributes.st_mtime)
    info.mode = stat.S_IMODE(attributes.st_mode)
    if stat.S_ISLNK(attributes.st_mode):
        info.type = tarfile.SYMTYPE
        info.linkname = os.readlink(file.path)
    else:
        info.size = attributes.st_size
    return info


def supported_extensions() -> list[str]:
    """List archive extensions that can be written."""
    return sorted(_ZIP_EXTENSIONS | _TAR_MODES.keys())


def entry_builder(extension: str) -> EntryBuilder:
    """Select the entry builder for an archive extension.

    Args:
        extension: Extension without leading dot, e.g. ``zip`` or ``tar.gz``.

    Returns:
        Callable building an entry from a relative name and a file.

    Raises:
        ConfigurationError: If the extension is not a supported archive type.
    """
    key = extension.lower()
    if key in _ZIP_EXTENSIONS:
        return zip_entry
    if key in _TAR_MODES:
        return tar_entry
    msg = f"Unsupported archive type {extension!r}. Supported: {', '.join(supported_extensions())}"
    raise ConfigurationError(msg)


class ArchiveSink(ABC):
    """Open archive accepting file entries.

    Use as a context manager; the archive file is created on entry and
    finalized on exit.
    """

    def __init__(self, archive: File, builder: EntryBuilder) -> None:
        self.archive = archive
        self.builder = builder
        self.count = 0

    @abstractmethod
    def _open(self) -> None: ...

    @abstractmethod
    def _write(self, relative_name: str, file: File) -> None: ...

    @abstractmethod
    def close(self) -> None:
        """Finalize the archive."""

    def add(self, relative_name: str | PurePosixPath, file: File) -> bool:
        """Append ``file`` under ``relative_name``.

        The archive being written is never packed into itself.

        Returns:
            True if an entry was written.

        Raises:
            TraversalIOError: If the file cannot be read or the archive
                cannot be written.
        """
        if file.path.resolve() == self.archive.path.resolve():
            logger.warning("Not packing archive into itself: %s", file)
            return False
        try:
            self._write(str(relative_name), file)
        except OSError as e:
            raise TraversalIOError(file.path, e) from e
        self.count += 1
        logger.debug("Packed %s as %s", file, relative_name)
        return True

    def __enter__(self) -> "ArchiveSink":
        try:
            self.archive.path.parent.mkdir(parents=True, exist_ok=True)
            self._open()
        except OSError as e:
            raise TraversalIOError(self.archive.path, e) from e
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()


class ZipSink(ArchiveSink):
    """Writes zip and jar archives."""

    def __init__(self, archive: File, builder: EntryBuilder = zip_entry) -> None:
        super().__init__(archive, builder)
        self._zip: zipfile.ZipFile | None = None

    def _open(self) -> None:
        self._zip = zipfile.ZipFile(self.archive.path, "w", compression=zipfile.ZIP_DEFLATED)

    def _write(self, relative_name: str, file: File) -> None:
        assert self._zip is not None
        info = self.builder(relative_name, file)
        if _is_link(file):
            self._zip.writestr(info, os.readlink(file.path))
            return
        with file.open_input() as source, self._zip.open(info, "w") as target:
            shutil.copyfileobj(source, target)

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None


class TarSink(ArchiveSink):
    """Writes plain and compressed tar archives."""

    def __init__(self, archive: File, mode: str, builder: EntryBuilder = tar_entry) -> None:
        super().__init__(archive, builder)
        self._mode = mode
        self._tar: tarfile.TarFile | None = None

    def _open(self) -> None:
        self._tar = tarfile.open(self.archive.path, self._mode)

    def _write(self, relative_name: str, file: File) -> None:
        assert self._tar is not None
        info = self.builder(relative_name, file)
        if info.issym():
            self._tar.addfile(info)
            return
        with file.open_input() as source:
            self._tar.addfile(info, source)

    def close(self) -> None:
        if self._tar is not None:
            self._tar.close()
            self._tar = None


def open_archive(archive: File) -> ArchiveSink:
    """Create the sink matching the archive's extension.

    Args:
        archive: Archive file to write. Any existing file is replaced.

    Returns:
        Unopened sink; enter it with ``with`` to start writing.

    Raises:
        ConfigurationError: If the extension is not a supported archive type.
    """
    extension = archive.extension
    builder = entry_builder(extension)
    if extension in _ZIP_EXTENSIONS:
        return ZipSink(archive, builder)
    return TarSink(archive, _TAR_MODES[extension], builder)
