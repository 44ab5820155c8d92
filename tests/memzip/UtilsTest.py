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
import unittest

from unittest.mock import patch

from memzip.Utils import formatSize, getEnv, sendException, ONE_KB, ONE_MB, ONE_GB, ONE_TB


class FormatSizeTest(unittest.TestCase):
    """Test cases for the formatSize utility function."""

    def testUnits(self):
        testCases = [
            (0, "Byte"),
            (512, "Bytes"),
            (ONE_KB, "K"),
            (ONE_MB * 2.3, "M"),
            (ONE_GB * 1.5, "G"),
            (ONE_TB * 2.5, "T"),
        ]

        for size, unit in testCases:
            with self.subTest(size=size):
                self.assertIn(unit, formatSize(size))

    def testByteUnits(self):
        self.assertEqual(formatSize(0), "0 Bytes")
        self.assertEqual(formatSize(512), "512 Bytes")

    def testDecimalPlaces(self):
        self.assertRegex(formatSize(ONE_MB * 2.3), r"^\d+M$")
        self.assertRegex(formatSize(ONE_GB * 1.5), r"^\d+\.\dG$")
        self.assertRegex(formatSize(ONE_TB * 2.5), r"^\d+\.\d\dT$")


class GetEnvTest(unittest.TestCase):

    def testTypesFollowDefault(self):
        with patch.dict(os.environ, {'MEMZIP_TEST_INT': '42', 'MEMZIP_TEST_BOOL': 'True', 'MEMZIP_TEST_STR': 'xz'}):
            self.assertEqual(getEnv('MEMZIP_TEST_INT', 0), 42)
            self.assertIs(getEnv('MEMZIP_TEST_BOOL', False), True)
            self.assertEqual(getEnv('MEMZIP_TEST_STR', 'deflate'), 'xz')
            self.assertEqual(getEnv('MEMZIP_TEST_STR', None), 'xz')

    def testFallback(self):
        with patch.dict(os.environ, {'MEMZIP_TEST_INT': 'not a number'}):
            self.assertEqual(getEnv('MEMZIP_TEST_INT', 7), 7)
            self.assertEqual(getEnv('MEMZIP_TEST_UNSET', 'store'), 'store')


class SendExceptionTest(unittest.TestCase):

    def testReportsAndLogs(self):
        error = ValueError('broken')

        with patch.dict(os.environ, {'RAISE_EXCEPTION': 'False'}):
            with patch('memzip.Utils.flushPrint') as flushPrint, patch('memzip.Utils.logger') as logger:
                sendException(logger, error)

        flushPrint.assert_called_once_with('Error: broken')
        logger.exception.assert_called_once_with(error)

    def testRaiseException(self):
        error = ValueError('broken')

        with patch.dict(os.environ, {'RAISE_EXCEPTION': 'True'}):
            with patch('memzip.Utils.flushPrint'), patch('memzip.Utils.logger') as logger:
                with self.assertRaises(ValueError):
                    sendException(logger, error)


if __name__ == '__main__':
    unittest.main()
