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


# Initialize SettingsGetter with fixed defaults so MEMZIP_* variables in the
# environment cannot change what the tests expect.
import stat

from memzip.Settings import SettingsGetter

settingsGetter = SettingsGetter(
    defaultCompression='deflate',
    defaultUnixMode=stat.S_IFREG | 0o644,
    codecChunkSize=16 * 1024,
    deflateLevel=-1,
    bzip2BlockSize=9,
    lzmaPreset=6,
)
