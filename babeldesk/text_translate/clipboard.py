# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from babeldesk.errors import ClipboardError


def copy_text(text: str) -> None:
    """Put ``text`` on the system clipboard using a throwaway Tk root."""
    try:
        import tkinter as tk
    except ModuleNotFoundError as e:
        raise ClipboardError("tkinter is not available") from e
    try:
        root = tk.Tk()
    except tk.TclError as e:
        raise ClipboardError(f"No display available: {e}") from e
    try:
        root.withdraw()
        root.clipboard_clear()
        root.clipboard_append(text)
        # flush to the window system before the root goes away
        root.update()
    finally:
        root.destroy()
