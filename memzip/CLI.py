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

import argparse
import json
import logging
import logging.config
import os
import platform
import stat

from memzip.Archive import ZipArchive
from memzip.Codecs import CompressionMethod, ZipArchiveError, resolveMethod
from memzip.Kernel import PUBLIC_VERSION, LOG_LEVEL_MAPPING, configureGlobalLogLevel, getLogger
from memzip.Settings import SettingsGetter
from memzip.Utils import flushPrint, formatSize, getEnv, sendException

logger = getLogger(__name__)


def configureLogging(logLevel):
    """Configure logging level from --log-level or MEMZIP_LOGGING_LEVEL

    Both can be a logging level name (DEBUG, INFO, WARNING, ERROR) or a path to a
    logging configuration JSON file.
    """

    def suppressNoisyLogger():
        logging.getLogger('sentry_sdk').setLevel(logging.INFO)

    # Priority: CLI argument > environment variable > None (no change)
    if logLevel is None:
        logLevel = getEnv('MEMZIP_LOGGING_LEVEL', None)

    if logLevel is None:
        suppressNoisyLogger()
        return None

    if os.path.isfile(logLevel):
        try:
            with open(logLevel, 'r') as configFile:
                configDict = json.load(configFile)

            logging.config.dictConfig(configDict)
            logger.info(f"Logging configured from file: {logLevel}")
            suppressNoisyLogger()
            return logLevel

        except (json.JSONDecodeError, ValueError, KeyError) as e:
            flushPrint(f"Failed to load logging config from {logLevel}: {e}")
            flushPrint("Falling back to default logging level configuration")

    if logLevel.upper() in LOG_LEVEL_MAPPING:
        configureGlobalLogLevel(LOG_LEVEL_MAPPING[logLevel.upper()])
        logger.info(f"Logging level set to {logLevel}")
    else:
        logger.warning(f"Invalid logging level '{logLevel}', using WARNING as default")
        configureGlobalLogLevel(logging.WARNING)

    suppressNoisyLogger()

    return logLevel


def showVersion():
    flushPrint(f"memzip v{PUBLIC_VERSION}")
    flushPrint("Compression methods: " + ", ".join(f"{m.name.lower()}({m.value})" for m in CompressionMethod))
    uname = platform.uname()
    flushPrint(f"Architecture: {uname.system} {uname.release} {uname.machine}")


def configureCLIParser():

    def validateLogLevel(logLevel):
        # Allow file paths (they'll be validated later)
        if os.path.exists(logLevel):
            return logLevel

        validLevels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if logLevel.upper() not in validLevels:
            raise argparse.ArgumentTypeError(
                f"Invalid log level '{logLevel}'. Valid levels are: {', '.join(validLevels)}"
            )
        return logLevel.upper()

    def validateMethod(methodStr):
        value = int(methodStr) if methodStr.isdigit() else methodStr
        try:
            return resolveMethod(value)
        except ZipArchiveError as e:
            raise argparse.ArgumentTypeError(str(e))

    def validateMode(modeStr):
        try:
            return int(modeStr, 8)
        except ValueError:
            raise argparse.ArgumentTypeError(f"Invalid octal mode '{modeStr}'")

    parser = argparse.ArgumentParser(
        prog='memzip', description="Pack files and folders into a ZIP archive built in memory."
    )
    parser.add_argument("paths", nargs='*', metavar="PATH", help="Files or directories to add")
    parser.add_argument("--output", "-o", metavar="ZIP_FILE", default="archive.zip", help="Archive to write")
    parser.add_argument(
        "--method",
        "-m",
        type=validateMethod,
        default=None,
        help="Compression method: store, deflate, bzip2, lzma, xz or its numeric code (default: deflate)",
    )
    parser.add_argument(
        "--mode",
        type=validateMode,
        default=None,
        help="Octal permission bits for every entry, e.g. 644 (default: taken from each file)",
    )
    parser.add_argument("--version", action="store_true", help="Show version information")
    parser.add_argument(
        "--log-level",
        type=validateLogLevel,
        help="Set logging level (DEBUG, INFO, WARNING, ERROR) or path to logging config JSON file",
        metavar="LEVEL_OR_FILE",
        dest="logLevel"
    )
    return parser


def collectFiles(paths):
    """
    Expand paths into (filePath, arcname) pairs

    Files keep their base name; directories are walked and named relative to their parent,
    so "photos/" yields "photos/a.jpg", "photos/trip/b.jpg".
    """
    collected = []

    for path in paths:
        if os.path.isdir(path):
            dirPath = os.path.abspath(path)
            for root, dirs, files in os.walk(dirPath):
                dirs.sort()
                relRoot = os.path.relpath(root, os.path.dirname(dirPath))
                for f in sorted(files):
                    arcname = os.path.join(relRoot, f).replace("\\", "/")
                    collected.append((os.path.join(root, f), arcname))
        elif os.path.isfile(path):
            collected.append((path, os.path.basename(path)))
        else:
            raise FileNotFoundError(f"No such file or directory: {path}")

    return collected


def buildArchive(files, method=None, mode=None, clock=None) -> ZipArchive:
    archive = ZipArchive(clock=clock, settings=SettingsGetter.getInstance())

    for filePath, arcname in files:
        with open(filePath, 'rb') as f:
            content = f.read()

        if mode is None:
            unixMode = stat.S_IFREG | stat.S_IMODE(os.stat(filePath).st_mode)
        else:
            unixMode = stat.S_IFREG | mode

        entry = archive.addEntry(arcname, content, compressionMethod=method, unixMode=unixMode)
        logger.info(f"Added {arcname} ({formatSize(entry.uncompressedSize)} -> {formatSize(entry.compressedSize)})")

    archive.finalize()
    return archive


def main(argv=None):
    parser = configureCLIParser()
    args = parser.parse_args(argv)

    configureLogging(args.logLevel)

    if args.version:
        showVersion()
        return 0

    if not args.paths:
        parser.print_usage()
        flushPrint("Error: at least one PATH is required")
        return 1

    try:
        files = collectFiles(args.paths)
        archive = buildArchive(files, method=args.method, mode=args.mode)

        with open(args.output, 'wb') as f:
            archive.writeTo(f)
    except (OSError, ZipArchiveError) as e:
        sendException(logger, e)
        return 1

    flushPrint(f"{args.output}: {archive.entryCount} entries, {formatSize(archive.size)}")
    return 0
