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


import json
import logging
import os
import shutil
import tempfile
import unittest

from unittest.mock import patch

from memzip.Kernel import ArchiveEvent, Event, EventService, EventTiming, SecretGetter, Singleton, getLogger


class SingletonTest(unittest.TestCase):

    def testSameInstance(self):

        class Counter(Singleton):

            def initialize(self, start=0):
                self.value = start

        first = Counter(start=5)
        second = Counter(start=10)

        self.assertIs(first, second)
        self.assertIs(Counter.getInstance(), first)
        self.assertEqual(second.value, 5)


class EventServiceTest(unittest.TestCase):
    """
    Test case for the singleton, signalslot-based EventService.
    """

    def setUp(self):
        self.e = EventService.getInstance()
        self.e.reset()
        self.e.register('E')

    def tearDown(self):
        self.e.unregister('E')

    def testIsSingleton(self):
        self.assertIs(EventService.getInstance(), self.e)

    def testArchiveEventsRegistered(self):
        self.assertTrue(self.e.isRegistered(ArchiveEvent.entryAdd.key))
        self.assertTrue(self.e.isRegistered(ArchiveEvent.archiveFinalize.key))

    def testRegister(self):
        self.assertFalse(self.e.register('E'))
        self.assertTrue(self.e.unregister('E'))
        self.assertFalse(self.e.unregister('E'))
        self.assertTrue(self.e.register('E'))

    def testSubscribeUnregisteredEvent(self):
        with self.assertRaises(KeyError):
            self.e.subscribe('Missing', lambda **kwargs: None)

    def testTriggerUnregisteredEventIsNoop(self):
        self.e.trigger('Missing', value=1)

    def testTiming(self):
        log = []

        def before(value=None, **kwargs):
            log.append(('before', value))

        def after(value=None, **kwargs):
            log.append(('after', value))

        self.e.subscribe('E', after, EventTiming.AFTER)
        self.e.subscribe('E', before, 'before')
        self.e.trigger('E', value=1)
        self.e.trigger('E', timing=EventTiming.AFTER, value=2)

        self.assertEqual(log, [('before', 1), ('after', 1), ('after', 2)])

        with self.assertRaises(ValueError):
            self.e.subscribe('E', after, 'SOMETIME')

    def testSubscribeTwice(self):
        log = []

        def observer(**kwargs):
            log.append(kwargs)

        self.e.subscribe('E', observer)
        self.e.subscribe('E', observer)
        self.e.trigger('E', value=1)

        self.assertEqual(log, [{'value': 1}])

    def testUnsubscribe(self):
        log = []

        def observer(**kwargs):
            log.append(kwargs)

        self.e.subscribe('E', observer)
        self.e.unsubscribe('E', observer)
        self.e.trigger('E', value=1)

        self.assertEqual(log, [])

    def testReset(self):
        log = []

        def observer(**kwargs):
            log.append(kwargs)

        self.e.subscribe('E', observer)
        self.e.reset()
        self.e.trigger('E', value=1)

        self.assertTrue(self.e.isRegistered('E'))
        self.assertEqual(log, [])

    def testEventWrapper(self):
        log = []

        def observer(**kwargs):
            log.append(kwargs)

        event = Event('E')
        event.subscribe(observer)
        event.trigger(value=3)
        event.unsubscribe(observer)
        event.trigger(value=4)

        self.assertEqual(log, [{'value': 3}])


class SecretGetterTest(unittest.TestCase):

    def setUp(self):
        self.tempDir = tempfile.mkdtemp()
        self.secretFile = os.path.join(self.tempDir, '.secret')
        with open(self.secretFile, 'w') as f:
            json.dump({'MEMZIP_TEST_SECRET': 'from-file'}, f)

        self.getter = SecretGetter.getInstance()
        self.getter.initialize(secretFilePath=self.secretFile)

    def tearDown(self):
        self.getter.initialize()
        shutil.rmtree(self.tempDir, ignore_errors=True)

    def testEnvironmentFirst(self):
        with patch.dict(os.environ, {'MEMZIP_TEST_SECRET': 'from-env'}):
            self.assertEqual(self.getter.get('MEMZIP_TEST_SECRET'), 'from-env')

    def testSecretFile(self):
        with patch.dict(os.environ):
            os.environ.pop('MEMZIP_TEST_SECRET', None)
            self.assertEqual(self.getter.get('MEMZIP_TEST_SECRET'), 'from-file')
            self.assertIsNone(self.getter.get('MEMZIP_TEST_MISSING'))

    def testBrokenSecretFile(self):
        with open(self.secretFile, 'w') as f:
            f.write('{not json')

        with patch.dict(os.environ):
            os.environ.pop('MEMZIP_TEST_SECRET', None)
            self.assertIsNone(self.getter.get('MEMZIP_TEST_SECRET'))


class GetLoggerTest(unittest.TestCase):

    def testLoggerAdapter(self):
        logger = getLogger('memzip.test', version='9.9.9')

        self.assertIsInstance(logger, logging.LoggerAdapter)
        self.assertEqual(logger.extra['version'], '9.9.9')

    def testSentryHandlerAddedOnce(self):
        from sentry_sdk.integrations.logging import SentryHandler

        getLogger('memzip.once')
        getLogger('memzip.once')

        handlers = [h for h in logging.getLogger('memzip.once').handlers if isinstance(h, SentryHandler)]
        self.assertEqual(len(handlers), 1)


if __name__ == '__main__':
    unittest.main()
