# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from babeldesk.text_translate.translator import (
    TextTranslation,
    TextTranslator,
    TextTranslatorConfig,
    detect_language,
)

__all__ = ["TextTranslation", "TextTranslator", "TextTranslatorConfig", "detect_language"]
