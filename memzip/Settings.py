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

import os
import stat

from memzip.Kernel import Singleton, getLogger

# Compression method used when addEntry() is called without one
DEFAULT_COMPRESSION = os.getenv('MEMZIP_DEFAULT_COMPRESSION', 'deflate')

# Regular file, rw-r--r--
DEFAULT_UNIX_MODE = int(os.getenv('MEMZIP_DEFAULT_UNIX_MODE', '%o' % (stat.S_IFREG | 0o644)), 8)

# Input slice size fed to streaming compressors (16 KiB)
CODEC_CHUNK_SIZE = int(os.getenv('MEMZIP_CODEC_CHUNK_SIZE', 16 * 1024))

# zlib.Z_DEFAULT_COMPRESSION
DEFLATE_LEVEL = int(os.getenv('MEMZIP_DEFLATE_LEVEL', -1))

# 9 means 900k blocks, the largest bzip2 supports
BZIP2_BLOCK_SIZE = int(os.getenv('MEMZIP_BZIP2_BLOCK_SIZE', 9))

# lzma.PRESET_DEFAULT
LZMA_PRESET = int(os.getenv('MEMZIP_LZMA_PRESET', 6))

logger = getLogger(__name__)


# Singleton
class SettingsGetter(Singleton):

    def initialize(
        self,
        defaultCompression=DEFAULT_COMPRESSION,
        defaultUnixMode=DEFAULT_UNIX_MODE,
        codecChunkSize=CODEC_CHUNK_SIZE,
        deflateLevel=DEFLATE_LEVEL,
        bzip2BlockSize=BZIP2_BLOCK_SIZE,
        lzmaPreset=LZMA_PRESET,
    ):
        """Initialize archive defaults, falling back to the environment-derived module values."""
        if codecChunkSize <= 0:
            raise ValueError(f"Codec chunk size must be positive: {codecChunkSize}")

        self._defaultCompression = defaultCompression
        self._defaultUnixMode = defaultUnixMode
        self._codecChunkSize = codecChunkSize
        self._deflateLevel = deflateLevel
        self._bzip2BlockSize = bzip2BlockSize
        self._lzmaPreset = lzmaPreset

        logger.debug(
            f"Settings initialized: compression={defaultCompression}, mode={defaultUnixMode:o}, "
            f"chunk={codecChunkSize}"
        )

    @property
    def defaultCompression(self):
        return self._defaultCompression

    @property
    def defaultUnixMode(self) -> int:
        return self._defaultUnixMode

    @property
    def codecChunkSize(self) -> int:
        return self._codecChunkSize

    @property
    def deflateLevel(self) -> int:
        return self._deflateLevel

    @property
    def bzip2BlockSize(self) -> int:
        return self._bzip2BlockSize

    @property
    def lzmaPreset(self) -> int:
        return self._lzmaPreset
