# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from babeldesk.storage.config_file import ConfigFile
from babeldesk.storage.kv import KeyValueStore
from babeldesk.storage.settings import SettingsRepository

__all__ = ["ConfigFile", "KeyValueStore", "SettingsRepository"]
