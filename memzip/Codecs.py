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

import bz2
import lzma
import struct
import zlib

from enum import IntEnum
from typing import Iterator

from memzip.Headers import LZMA_EOS_FLAG
from memzip.Settings import SettingsGetter


class ZipArchiveError(RuntimeError):
    """Base class of every error raised while building an archive"""


class UnsupportedCompressionMethod(ZipArchiveError):
    """Raised when a compression method tag is not one of the supported codes"""

    def __init__(self, method):
        super().__init__(f"Unsupported compression method: {method!r}")
        self.method = method


class CompressionFailed(ZipArchiveError):
    """Raised when the underlying compressor cannot initialize or complete"""


class DeflateFailed(CompressionFailed):
    pass


class Bzip2Failed(CompressionFailed):
    pass


class LzmaFailed(CompressionFailed):
    """Shared by the LZMA and XZ codecs, both backed by liblzma"""


class CompressionMethod(IntEnum):
    """Compression method codes as stored in ZIP headers (APPNOTE 4.4.5)"""
    STORE = 0
    DEFLATE = 8
    BZIP2 = 12
    LZMA = 14
    XZ = 95


def resolveMethod(method) -> CompressionMethod:
    """
    Normalize a compression method tag

    Args:
        method: CompressionMethod, numeric code (8) or name ("deflate")

    Returns:
        CompressionMethod: The matching method

    Raises:
        UnsupportedCompressionMethod: For any other value
    """
    if isinstance(method, CompressionMethod):
        return method

    if isinstance(method, str):
        try:
            return CompressionMethod[method.strip().upper()]
        except KeyError:
            raise UnsupportedCompressionMethod(method) from None

    if isinstance(method, int) and not isinstance(method, bool):
        try:
            return CompressionMethod(method)
        except ValueError:
            raise UnsupportedCompressionMethod(method) from None

    raise UnsupportedCompressionMethod(method)


def iterSlices(data, chunkSize: int) -> Iterator[memoryview]:
    """Yield consecutive views of at most chunkSize bytes without copying"""
    view = memoryview(data)
    for start in range(0, len(view), chunkSize):
        yield view[start:start + chunkSize]


class Codec:
    """
    One compression method: bytes in, bytes out.

    Attributes:
        method: Code written into the headers
        versionNeeded: Minimum "version needed to extract" for this method
        flags: General purpose bits this method requires
    """
    method: CompressionMethod
    versionNeeded = 20
    flags = 0

    def __init__(self, settings: SettingsGetter = None):
        self.settings = settings or SettingsGetter.getInstance()

    def compress(self, data) -> bytes:
        raise NotImplementedError

    def _drain(self, compressor, data) -> bytes:
        """Feed data through a streaming compressor in chunks and collect the whole output"""
        output = bytearray()
        for piece in iterSlices(data, self.settings.codecChunkSize):
            output += compressor.compress(piece)
        output += compressor.flush()
        return bytes(output)


class StoreCodec(Codec):
    method = CompressionMethod.STORE

    def compress(self, data) -> bytes:
        return bytes(data)


class DeflateCodec(Codec):
    method = CompressionMethod.DEFLATE

    def compress(self, data) -> bytes:
        # Negative wbits: raw DEFLATE stream without zlib header or trailer
        try:
            compressor = zlib.compressobj(self.settings.deflateLevel, zlib.DEFLATED, -zlib.MAX_WBITS)
            return self._drain(compressor, data)
        except (zlib.error, ValueError) as e:
            raise DeflateFailed(f"Deflate compression failed: {e}") from e


class Bzip2Codec(Codec):
    method = CompressionMethod.BZIP2
    versionNeeded = 46

    def compress(self, data) -> bytes:
        try:
            compressor = bz2.BZ2Compressor(self.settings.bzip2BlockSize)
            return self._drain(compressor, data)
        except (OSError, ValueError) as e:
            raise Bzip2Failed(f"Bzip2 compression failed: {e}") from e


class LzmaCodec(Codec):
    """
    Raw LZMA1 stream behind the ZIP-specific LZMA header (APPNOTE 5.8.8):

        major version (1) | minor version (1) | properties size (2, LE) | properties

    The header counts towards the compressed size.
    """
    method = CompressionMethod.LZMA
    versionNeeded = 63
    flags = LZMA_EOS_FLAG

    # LZMA SDK version recorded in the header, as written by Python's zipfile
    VERSION_MAJOR = 9
    VERSION_MINOR = 4

    def compress(self, data) -> bytes:
        try:
            lzmaFilter = {'id': lzma.FILTER_LZMA1, 'preset': self.settings.lzmaPreset}
            compressor = lzma.LZMACompressor(lzma.FORMAT_RAW, filters=[lzmaFilter])
            # Private helper, the same one zipfile.LZMACompressor uses for this header
            properties = lzma._encode_filter_properties(lzmaFilter)
            stream = self._drain(compressor, data)
        except (lzma.LZMAError, ValueError) as e:
            raise LzmaFailed(f"LZMA compression failed: {e}") from e

        header = struct.pack('<BBH', self.VERSION_MAJOR, self.VERSION_MINOR, len(properties))
        return header + properties + stream


class XzCodec(Codec):
    method = CompressionMethod.XZ
    versionNeeded = 63

    def compress(self, data) -> bytes:
        try:
            compressor = lzma.LZMACompressor(
                lzma.FORMAT_XZ, check=lzma.CHECK_CRC64, preset=self.settings.lzmaPreset
            )
            return self._drain(compressor, data)
        except (lzma.LZMAError, ValueError) as e:
            raise LzmaFailed(f"XZ compression failed: {e}") from e


CODECS = {codecClass.method: codecClass for codecClass in (StoreCodec, DeflateCodec, Bzip2Codec, LzmaCodec, XzCodec)}


def getCodec(method, settings: SettingsGetter = None) -> Codec:
    """
    Look up the codec for a compression method tag

    Raises:
        UnsupportedCompressionMethod: If the tag is not a supported method
    """
    return CODECS[resolveMethod(method)](settings)


def compress(method, data, settings: SettingsGetter = None) -> bytes:
    """Compress data with the codec selected by method"""
    return getCodec(method, settings).compress(data)
