# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import os


MESSAGES = {
    "en": {
        "no_files": "Add files first",
        "missing_api_key": "Configure the API key first",
        "already_running": "A translation run is already in progress",
        "empty_text": "Enter the text to translate",
        "file_not_found": "File not found: {path}",
        "not_a_pdf": "Skipped non-PDF file: {path}",
        "job_failed_to_start": "Could not start translation of {name}: {error}",
        "all_done": "All files processed: {completed} completed, {failed} failed, {skipped} skipped",
        "translate_done": "Translation finished",
        "translate_done_copied": "Translation finished and copied to the clipboard",
        "translate_failed": "Translation failed: {error}",
        "copy_failed": "Could not copy to the clipboard: {error}",
        "bookmarks_fetched": "Fetched {count} bookmarks",
        "bookmarks_failed": "Fetching bookmarks failed: {error}",
        "bookmarks_stale": "Bookmark cache is older than one hour, run with --refresh to update it",
        "bookmarks_empty": "No cached bookmarks, run with --refresh to fetch them",
        "bookmark_opened": "Opened {url}",
        "bookmark_not_found": "No bookmark number {index}, the list has {count}",
        "bookmark_open_failed": "Could not open {url} in a browser",
        "settings_saved": "Settings saved",
        "settings_save_failed": "Settings could not be saved",
        "settings_exported": "Settings exported to {path}",
        "settings_export_failed": "Settings export failed",
        "settings_imported": "Settings imported from {path}",
        "settings_import_failed": "Settings import failed: {path} is not a valid settings file",
        "config_written": "Configuration written: {path}",
        "missing_dependency": "Missing dependency: {missing}",
    },
    "zh": {
        "no_files": "请先添加文件",
        "missing_api_key": "请先配置 API Key",
        "already_running": "翻译任务正在进行中",
        "empty_text": "请输入要翻译的文本",
        "file_not_found": "找不到文件: {path}",
        "not_a_pdf": "已跳过非 PDF 文件: {path}",
        "job_failed_to_start": "无法开始翻译 {name}: {error}",
        "all_done": "所有文件处理完成：完成 {completed} 个，失败 {failed} 个，跳过 {skipped} 个",
        "translate_done": "翻译完成",
        "translate_done_copied": "翻译完成，已复制到剪贴板",
        "translate_failed": "翻译失败: {error}",
        "copy_failed": "复制到剪贴板失败: {error}",
        "bookmarks_fetched": "成功获取 {count} 个书签",
        "bookmarks_failed": "获取失败: {error}",
        "bookmarks_stale": "书签缓存已超过一小时，可使用 --refresh 更新",
        "bookmarks_empty": "暂无缓存书签，请使用 --refresh 获取",
        "bookmark_opened": "已打开 {url}",
        "bookmark_not_found": "没有第 {index} 个书签，共 {count} 个",
        "bookmark_open_failed": "无法在浏览器中打开 {url}",
        "settings_saved": "设置已保存",
        "settings_save_failed": "设置保存失败",
        "settings_exported": "设置已导出到 {path}",
        "settings_export_failed": "设置导出失败",
        "settings_imported": "已从 {path} 导入设置",
        "settings_import_failed": "导入失败: {path} 不是有效的设置文件",
        "config_written": "配置已写入: {path}",
        "missing_dependency": "缺少依赖: {missing}",
    },
}


def t(key: str, *, lang: str | None = None, **kwargs) -> str:
    l = (lang or os.getenv("BABELDESK_LANG") or "en").lower()
    if l not in MESSAGES:
        l = "en"
    msg = MESSAGES.get(l, {}).get(key) or MESSAGES["en"].get(key) or key
    try:
        return msg.format(**kwargs)
    except (KeyError, IndexError):
        return msg
