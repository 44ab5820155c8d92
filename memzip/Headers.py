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
import struct
import zipfile

from dataclasses import dataclass

# ZIP format constants (PKWARE APPNOTE.TXT)
LOCAL_FILE_HEADER_SIGNATURE = struct.unpack('<I', zipfile.stringFileHeader)[0]  # 0x04034b50
CENTRAL_DIR_SIGNATURE = struct.unpack('<I', zipfile.stringCentralDir)[0]  # 0x02014b50
END_OF_CENTRAL_DIR_SIGNATURE = struct.unpack('<I', zipfile.stringEndArchive)[0]  # 0x06054b50

LOCAL_FILE_HEADER_SIZE = 30
CENTRAL_DIR_HEADER_SIZE = 46
END_OF_CENTRAL_DIR_SIZE = 22

# General purpose bit flags
UTF8_FLAG = 0x0800  # Bit 11: filename is UTF-8 encoded
LZMA_EOS_FLAG = 0x0002  # Bit 1: LZMA stream ends with an end-of-stream marker

# Upper byte of "version made by": 3 = UNIX, so external attributes carry st_mode
UNIX_HOST = 3

# Largest values the classic (non-Zip64) fields can hold
MAX_UINT16 = 0xFFFF
MAX_UINT32 = 0xFFFFFFFF


def versionMadeBy(versionNeeded: int) -> int:
    return (UNIX_HOST << 8) | max(20, versionNeeded)


def toDosDateTime(dt: datetime.datetime):
    """
    Convert a datetime to DOS time and date format

    Returns:
        tuple: (dosTime, dosDate) - both as 16-bit integers

    DOS time format (16 bits):
        bits 0-4: seconds / 2 (0-29)
        bits 5-10: minutes (0-59)
        bits 11-15: hours (0-23)

    DOS date format (16 bits):
        bits 0-4: day (1-31)
        bits 5-8: month (1-12)
        bits 9-15: year - 1980 (0-127, representing 1980-2107)
    """
    # DOS date range is 1980-2107
    if dt.year < 1980:
        return 0, (1 << 5) | 1
    if dt.year > 2107:
        return (23 << 11) | (59 << 5) | 29, (127 << 9) | (12 << 5) | 31

    dosTime = (dt.hour << 11) | (dt.minute << 5) | (dt.second // 2)
    dosDate = ((dt.year - 1980) << 9) | (dt.month << 5) | dt.day

    return dosTime, dosDate


@dataclass(frozen=True)
class LocalFileHeader:
    versionNeeded: int
    flags: int
    method: int
    dosTime: int
    dosDate: int
    crc32: int
    compressedSize: int
    uncompressedSize: int
    filenameLength: int
    extraLength: int = 0

    def pack(self) -> bytes:
        """Encode the 30 fixed bytes; the filename follows immediately"""
        return struct.pack(
            '<IHHHHHIIIHH',
            LOCAL_FILE_HEADER_SIGNATURE,
            self.versionNeeded,  # Version needed to extract
            self.flags,  # General purpose bit flag
            self.method,  # Compression method
            self.dosTime,  # File last modification time
            self.dosDate,  # File last modification date
            self.crc32,  # CRC-32 of the uncompressed data
            self.compressedSize,
            self.uncompressedSize,
            self.filenameLength,
            self.extraLength,
        )


@dataclass(frozen=True)
class CentralDirectoryHeader:
    versionMadeBy: int
    versionNeeded: int
    flags: int
    method: int
    dosTime: int
    dosDate: int
    crc32: int
    compressedSize: int
    uncompressedSize: int
    filenameLength: int
    externalAttributes: int
    localHeaderOffset: int
    extraLength: int = 0
    commentLength: int = 0
    diskNumber: int = 0
    internalAttributes: int = 0

    @classmethod
    def fromLocalHeader(cls, localHeader: LocalFileHeader, externalAttributes: int, localHeaderOffset: int):
        """Mirror a local header into its central directory counterpart"""
        return cls(
            versionMadeBy=versionMadeBy(localHeader.versionNeeded),
            versionNeeded=localHeader.versionNeeded,
            flags=localHeader.flags,
            method=localHeader.method,
            dosTime=localHeader.dosTime,
            dosDate=localHeader.dosDate,
            crc32=localHeader.crc32,
            compressedSize=localHeader.compressedSize,
            uncompressedSize=localHeader.uncompressedSize,
            filenameLength=localHeader.filenameLength,
            externalAttributes=externalAttributes,
            localHeaderOffset=localHeaderOffset,
            extraLength=localHeader.extraLength,
        )

    def pack(self) -> bytes:
        """Encode the 46 fixed bytes; the filename follows immediately"""
        return struct.pack(
            '<IHHHHHHIIIHHHHHII',
            CENTRAL_DIR_SIGNATURE,
            self.versionMadeBy,
            self.versionNeeded,
            self.flags,
            self.method,
            self.dosTime,
            self.dosDate,
            self.crc32,
            self.compressedSize,
            self.uncompressedSize,
            self.filenameLength,
            self.extraLength,
            self.commentLength,
            self.diskNumber,  # Disk number start
            self.internalAttributes,
            self.externalAttributes,
            self.localHeaderOffset,  # Relative offset of local header
        )


@dataclass(frozen=True)
class EndOfCentralDirectoryRecord:
    entryCount: int
    centralDirSize: int
    centralDirOffset: int

    def pack(self) -> bytes:
        return struct.pack(
            '<IHHHHIIH',
            END_OF_CENTRAL_DIR_SIGNATURE,
            0,  # Number of this disk
            0,  # Disk where central directory starts
            self.entryCount,  # Number of entries on this disk
            self.entryCount,  # Total number of entries
            self.centralDirSize,
            self.centralDirOffset,  # Offset of start of central directory
            0,  # Comment length
        )
