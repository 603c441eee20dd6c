# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0


class BabeldeskError(Exception):
    """Base class for errors raised by babeldesk."""


class ConfigurationError(BabeldeskError):
    """A run or request cannot start: nothing to do or credentials missing.

    ``key`` names the message in :mod:`babeldesk.utils.i18n` so callers can
    show a localized notification.
    """

    def __init__(self, key: str, message: str | None = None):
        super().__init__(message or key)
        self.key = key


class JobBusyError(BabeldeskError):
    """A translating job cannot be removed from the queue."""


class RunnerError(BabeldeskError):
    """The external process could not be launched."""


class TranslateError(BabeldeskError):
    """The chat-completion API returned an error or an unusable response."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ScrapeError(BabeldeskError):
    """The headless browser failed to load or evaluate the bookmark page."""


class ClipboardError(BabeldeskError):
    """The system clipboard could not be written."""
