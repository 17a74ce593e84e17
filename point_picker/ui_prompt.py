from __future__ import annotations

import tkinter as tk
from tkinter import ttk, simpledialog
from typing import Optional

from .calibration import Point


class PointEntryDialog(simpledialog.Dialog):
    """Modal X/Y entry for a reference point."""

    def __init__(self, parent: tk.Misc, image_point: Point, title: str = "Reference Point") -> None:
        self.image_point = image_point
        self.value: Optional[Point] = None
        super().__init__(parent, title)

    def body(self, master: tk.Frame):
        ttk.Label(master, text="Specify plot coordinates:").grid(row=0, column=0, columnspan=2, sticky="w")
        ttk.Label(
            master, text=f"pixel ({self.image_point.x:.1f}, {self.image_point.y:.1f})"
        ).grid(row=1, column=0, columnspan=2, sticky="w", pady=(0, 8))
        self.var_x = tk.StringVar(value="")
        self.var_y = tk.StringVar(value="")
        ttk.Label(master, text="X:").grid(row=2, column=0, sticky="e")
        ent_x = ttk.Entry(master, textvariable=self.var_x, width=14)
        ent_x.grid(row=2, column=1, sticky="w", padx=(6, 0))
        ttk.Label(master, text="Y:").grid(row=3, column=0, sticky="e")
        ttk.Entry(master, textvariable=self.var_y, width=14).grid(row=3, column=1, sticky="w", padx=(6, 0))
        return ent_x

    def validate(self) -> bool:
        try:
            x = float(self.var_x.get().strip())
            y = float(self.var_y.get().strip())
        except ValueError:
            # keep the dialog open until both fields parse
            self.bell()
            return False
        self._parsed = Point(x, y)
        return True

    def apply(self) -> None:
        self.value = self._parsed


class TkValuePrompt:
    def __init__(self, parent: tk.Misc) -> None:
        self.parent = parent

    def ask_value(self, image_point: Point) -> Optional[Point]:
        return PointEntryDialog(self.parent, image_point).value


class TkClipboard:
    def __init__(self, widget: tk.Misc) -> None:
        self.widget = widget

    def copy(self, text: str) -> None:
        self.widget.clipboard_clear()
        self.widget.clipboard_append(text)
