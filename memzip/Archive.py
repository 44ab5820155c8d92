#!/usr/bin/env python
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0
#
# memzip - In-memory ZIP archive builder
# Copyright (C) 2025-2026 memzip contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import datetime
import zlib

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union

from memzip.Codecs import CompressionMethod, ZipArchiveError, getCodec
from memzip.Headers import (
    CENTRAL_DIR_HEADER_SIZE, LOCAL_FILE_HEADER_SIZE, MAX_UINT16, MAX_UINT32, UTF8_FLAG,
    CentralDirectoryHeader, EndOfCentralDirectoryRecord, LocalFileHeader, toDosDateTime
)
from memzip.Kernel import ArchiveEvent, EventTiming, getLogger
from memzip.Settings import SettingsGetter
from memzip.Utils import formatSize

logger = getLogger(__name__)


class ArchiveFinalized(ZipArchiveError):
    """Raised when an entry is added to an archive that has already been finalized"""


class ArchiveLimitExceeded(ZipArchiveError):
    """Raised when an entry would need Zip64 fields, which are not supported"""


class ArchiveState(Enum):
    OPEN = auto()
    FINALIZED = auto()


@dataclass(frozen=True)
class EntryOptions:
    """Per-entry settings; None picks the configured default"""
    compressionMethod: Union[CompressionMethod, int, str, None] = None
    unixMode: Optional[int] = None


@dataclass(frozen=True)
class EntryInfo:
    """Summary of a committed entry"""
    name: bytes
    method: CompressionMethod
    crc32: int
    compressedSize: int
    uncompressedSize: int
    offset: int
    unixMode: int


class ZipArchive:
    """
    ZIP archive assembled entirely in memory

    Local file headers and payloads are appended to the body buffer as entries
    arrive, while the matching central directory records accumulate in a second
    buffer. finalize() copies the central directory behind the body and closes
    the archive with the end of central directory record.

    Notes:
    - Every entry shares one timestamp, taken when the archive is created
    - No Zip64: sizes, offsets and entry count must fit the classic fields
    - Not thread-safe; callers serialize access to one instance
    """

    def __init__(self, clock=None, settings: SettingsGetter = None):
        """
        Args:
            clock: Callable returning the local datetime; called exactly once
            settings: Defaults for compression method, unix mode and codecs
        """
        self.settings = settings or SettingsGetter.getInstance()

        now = (clock or datetime.datetime.now)()
        self._dosTime, self._dosDate = toDosDateTime(now)

        self._body = bytearray()
        self._centralDir = bytearray()
        self._entries = []
        self._state = ArchiveState.OPEN

    @classmethod
    def create(cls, clock=None, settings: SettingsGetter = None) -> "ZipArchive":
        return cls(clock=clock, settings=settings)

    @property
    def state(self) -> ArchiveState:
        return self._state

    @property
    def isFinalized(self) -> bool:
        return self._state is ArchiveState.FINALIZED

    @property
    def entryCount(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple:
        return tuple(self._entries)

    @property
    def dosTime(self) -> int:
        return self._dosTime

    @property
    def dosDate(self) -> int:
        return self._dosDate

    @property
    def centralDirectorySize(self) -> int:
        return len(self._centralDir)

    @property
    def size(self) -> int:
        return len(self._body)

    @property
    def data(self) -> bytes:
        """Accumulated bytes; a complete archive once finalized"""
        return bytes(self._body)

    def _encodeName(self, name):
        if isinstance(name, str):
            try:
                return name.encode('ascii'), 0
            except UnicodeEncodeError:
                return name.encode('utf-8'), UTF8_FLAG
        return bytes(name), 0

    def _checkLimits(self, nameBytes: bytes, content, payloadSize: int, offset: int):
        if len(nameBytes) > MAX_UINT16:
            raise ArchiveLimitExceeded(f"Entry name too long: {len(nameBytes)} bytes")

        if self.entryCount + 1 > MAX_UINT16:
            raise ArchiveLimitExceeded(f"Too many entries: {self.entryCount + 1}")

        if len(content) > MAX_UINT32 or payloadSize > MAX_UINT32:
            raise ArchiveLimitExceeded(f"Entry too large: {len(content)} bytes")

        # The local header of this entry and the central directory start must both be addressable
        if offset > MAX_UINT32:
            raise ArchiveLimitExceeded(f"Local header offset out of range: {offset}")

        entryEnd = offset + LOCAL_FILE_HEADER_SIZE + len(nameBytes) + payloadSize
        centralDirEnd = len(self._centralDir) + CENTRAL_DIR_HEADER_SIZE + len(nameBytes)
        if entryEnd > MAX_UINT32 or centralDirEnd > MAX_UINT32:
            raise ArchiveLimitExceeded(f"Archive would exceed {formatSize(MAX_UINT32)}")

    def addEntry(self, name, content, compressionMethod=None, unixMode: int = None) -> EntryInfo:
        """
        Compress content and append it as a new entry

        Args:
            name: Entry name, str (UTF-8) or raw bytes
            content: Uncompressed bytes-like payload
            compressionMethod: CompressionMethod, its code or name; None for the default
            unixMode: st_mode stored in the external attributes; None for the default

        Returns:
            EntryInfo: The committed entry

        Raises:
            ArchiveFinalized: If finalize() has already run
            UnsupportedCompressionMethod: If compressionMethod is unknown
            CompressionFailed: If the codec fails (DeflateFailed, Bzip2Failed, LzmaFailed)
            ArchiveLimitExceeded: If the entry would need Zip64
            ValueError: If unixMode does not fit 16 bits

        Observers of ArchiveEvent.entryAdd run BEFORE the buffers change and AFTER the
        commit; their errors are logged and never reach the caller.

        Either both buffers receive the whole entry or neither changes.
        """
        if self._state is ArchiveState.FINALIZED:
            raise ArchiveFinalized("Cannot add entries to a finalized archive")

        if compressionMethod is None:
            compressionMethod = self.settings.defaultCompression
        if unixMode is None:
            unixMode = self.settings.defaultUnixMode

        if isinstance(unixMode, bool) or not isinstance(unixMode, int) or not 0 <= unixMode <= 0o177777:
            raise ValueError(f"Unix mode must be an integer in 0..0o177777: {unixMode!r}")

        codec = getCodec(compressionMethod, self.settings)
        nameBytes, nameFlags = self._encodeName(name)
        content = memoryview(content).cast('B')

        offset = len(self._body)
        crc = zlib.crc32(content)
        payload = codec.compress(content)

        self._checkLimits(nameBytes, content, len(payload), offset)

        localHeader = LocalFileHeader(
            versionNeeded=codec.versionNeeded,
            flags=codec.flags | nameFlags,
            method=codec.method,
            dosTime=self._dosTime,
            dosDate=self._dosDate,
            crc32=crc,
            compressedSize=len(payload),
            uncompressedSize=len(content),
            filenameLength=len(nameBytes),
        )
        centralHeader = CentralDirectoryHeader.fromLocalHeader(
            localHeader, externalAttributes=unixMode << 16, localHeaderOffset=offset
        )

        # Encode everything before touching either buffer
        localRecord = localHeader.pack() + nameBytes
        centralRecord = centralHeader.pack() + nameBytes

        entry = EntryInfo(
            name=nameBytes,
            method=codec.method,
            crc32=crc,
            compressedSize=len(payload),
            uncompressedSize=len(content),
            offset=offset,
            unixMode=unixMode,
        )

        self._notify(ArchiveEvent.entryAdd, EventTiming.BEFORE, archive=self, entry=entry)

        self._body += localRecord
        self._body += payload
        self._centralDir += centralRecord
        self._entries.append(entry)

        logger.debug(
            f"Entry added: {nameBytes!r} method={codec.method.name} offset={offset} "
            f"size={len(content)} -> {len(payload)}"
        )

        self._notify(ArchiveEvent.entryAdd, EventTiming.AFTER, archive=self, entry=entry)

        return entry

    def _notify(self, event, timing, **kwargs):
        # Observers cannot undo or abort a commit
        try:
            event.trigger(timing=timing, **kwargs)
        except Exception as e:
            logger.exception(f"Observer of {event.key} ({timing.value}) failed: {e}")

    def addFile(self, name, content, options: EntryOptions = None) -> EntryInfo:
        """addEntry() taking an EntryOptions bundle"""
        options = options or EntryOptions()
        return self.addEntry(name, content, compressionMethod=options.compressionMethod, unixMode=options.unixMode)

    def finalize(self) -> bytes:
        """
        Append the central directory and the end record; calling it again does nothing

        Returns:
            bytes: The complete archive
        """
        if self._state is ArchiveState.FINALIZED:
            return self.data

        self._notify(ArchiveEvent.archiveFinalize, EventTiming.BEFORE, archive=self)

        centralDirOffset = len(self._body)
        self._body += self._centralDir

        endRecord = EndOfCentralDirectoryRecord(
            entryCount=self.entryCount,
            centralDirSize=len(self._centralDir),
            centralDirOffset=centralDirOffset,
        )
        self._body += endRecord.pack()
        self._state = ArchiveState.FINALIZED

        logger.debug(
            f"Archive finalized: entries={self.entryCount}, cdOffset={centralDirOffset}, "
            f"cdSize={len(self._centralDir)}, total={formatSize(len(self._body))}"
        )

        self._notify(ArchiveEvent.archiveFinalize, EventTiming.AFTER, archive=self)

        return self.data

    def writeTo(self, stream) -> int:
        """
        Finalize and write the archive to a binary file-like object

        Returns:
            int: Number of bytes written
        """
        data = self.finalize()
        stream.write(data)
        return len(data)

