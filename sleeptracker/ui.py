"""User interface for the sleep tracker.

This module builds the customtkinter window for the tracker screen and
binds it to ``SessionTrackerController``: the Start, Stop and Clear
buttons follow the controller's visibility signals, the text box shows the
formatted nights, and one-shot events open the rating dialog or flash a
snackbar.  Background results are applied from the window's ``after``
loop, which drains the controller's scope.
"""
from __future__ import annotations

import logging
from typing import Optional

import customtkinter as ctk
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg

from sleeptracker.analytics import build_hours_figure, quality_summary, summarize_nights
from sleeptracker.data import SleepDatabase, SleepNight
from sleeptracker.scope import ThreadedScope
from sleeptracker.session_manager import SessionTrackerController, SleepQualityController
from sleeptracker.utils import QUALITY_LABELS


logger = logging.getLogger(__name__)

# How often queued background results are applied to the UI.
POLL_INTERVAL_MS = 50
# How long the snackbar stays visible.
SNACKBAR_MS = 3000
SNACKBAR_TEXT = "All your data is gone forever ((>_<))"


class SleepTrackerApp(ctk.CTk):
    """Main window for the sleep tracker."""

    def __init__(self, database: SleepDatabase) -> None:
        super().__init__()
        self.title("Track My Sleep Quality")
        self.geometry("600x650")
        ctk.set_appearance_mode("dark")

        self.database = database
        self.scope = ThreadedScope()
        self.controller = SessionTrackerController(database, self.scope)
        self.quality_dialog: Optional[SleepQualityDialog] = None
        self._unbind = []

        self._build_buttons()
        self._build_body()
        self._bind_controller()

        self.protocol("WM_DELETE_WINDOW", self.on_exit)
        self.poll_loop()

    def _build_buttons(self) -> None:
        self.button_row = ctk.CTkFrame(self)
        self.button_row.pack(fill="x", padx=10, pady=10)
        self.start_btn = ctk.CTkButton(self.button_row, text="Start", command=self.controller.on_start_tracking)
        self.stop_btn = ctk.CTkButton(self.button_row, text="Stop", command=self.controller.on_stop_tracking)
        self.clear_btn = ctk.CTkButton(
            self.button_row,
            text="Clear",
            fg_color="#c72626",
            hover_color="#d23b3b",
            command=self.controller.on_clear,
        )
        self.analytics_btn = ctk.CTkButton(self.button_row, text="Analytics", command=self.open_analytics_view)
        self.analytics_btn.pack(side="right", padx=5)

    def _build_body(self) -> None:
        self.textbox = ctk.CTkTextbox(self, wrap="word")
        self.textbox.pack(fill="both", expand=True, padx=10, pady=5)
        self.snackbar = ctk.CTkLabel(self, text="", font=ctk.CTkFont(size=14))
        self.snackbar.pack(fill="x", padx=10, pady=(0, 10))

    def _bind_controller(self) -> None:
        c = self.controller
        self._unbind = [
            c.start_button_visible.observe(lambda v: self._toggle(self.start_btn, v)),
            c.stop_button_visible.observe(lambda v: self._toggle(self.stop_btn, v)),
            c.clear_button_visible.observe(lambda v: self._toggle(self.clear_btn, v)),
            c.nights_string.observe(self._show_nights),
            c.show_snackbar_event.observe(self._on_snackbar),
            c.navigate_to_sleep_quality.observe(self._on_navigate),
            c.storage_error.observe(self._on_storage_error),
        ]

    @staticmethod
    def _toggle(button: ctk.CTkButton, visible: bool) -> None:
        if visible:
            button.pack(side="left", padx=5)
        else:
            button.pack_forget()

    def _show_nights(self, text: str) -> None:
        self.textbox.configure(state="normal")
        self.textbox.delete("1.0", "end")
        self.textbox.insert("1.0", text)
        self.textbox.configure(state="disabled")

    def _flash(self, text: str) -> None:
        self.snackbar.configure(text=text)
        self.after(SNACKBAR_MS, lambda: self.snackbar.configure(text=""))

    def _on_snackbar(self, show: bool) -> None:
        if show:
            self._flash(SNACKBAR_TEXT)
            self.controller.done_showing_snackbar()

    def _on_navigate(self, _: Optional[SleepNight]) -> None:
        night = self.controller.navigate_to_sleep_quality.consume()
        if night is None:
            return
        if self.quality_dialog is not None:
            self.quality_dialog.close()
        self.quality_dialog = SleepQualityDialog(self, night, self.database)
        try:
            self.quality_dialog.focus()
            self.quality_dialog.lift()
        except Exception:
            logger.debug("Could not raise rating dialog", exc_info=True)

    def _on_storage_error(self, error: Optional[Exception]) -> None:
        if error is None:
            return
        self._flash(f"Could not save your sleep data: {error}")
        self.controller.done_showing_error()

    def poll_loop(self) -> None:
        """Apply finished background work, then reschedule."""
        try:
            self.scope.drain()
            if self.quality_dialog is not None:
                self.quality_dialog.scope.drain()
        finally:
            self.after(POLL_INTERVAL_MS, self.poll_loop)

    def open_analytics_view(self) -> None:
        av = AnalyticsView(self, self.controller.nights.value)
        try:
            av.focus()
            av.lift()
        except Exception:
            logger.debug("Could not raise analytics view", exc_info=True)

    def on_exit(self) -> None:
        """Dispose controllers and close the application."""
        for unbind in self._unbind:
            unbind()
        if self.quality_dialog is not None:
            self.quality_dialog.controller.on_cleared()
        self.controller.on_cleared()
        self.destroy()


class SleepQualityDialog(ctk.CTkToplevel):
    """Rating screen shown after a night is stopped."""

    def __init__(self, parent: SleepTrackerApp, night: SleepNight, database: SleepDatabase) -> None:
        super().__init__(parent)
        self.parent = parent
        self.title("How did you sleep?")
        self.geometry("420x320")
        self.resizable(False, False)

        self.scope = ThreadedScope()
        self.controller = SleepQualityController(night.night_id, database, self.scope)

        ctk.CTkLabel(self, text="How did you sleep?", font=ctk.CTkFont(size=20)).pack(pady=20)
        for quality, label in sorted(QUALITY_LABELS.items()):
            ctk.CTkButton(
                self,
                text=f"{quality} - {label}",
                command=lambda q=quality: self.controller.on_set_sleep_quality(q),
            ).pack(pady=3, padx=20, fill="x")

        self.controller.navigate_to_sleep_tracker.observe(self._on_navigate)
        self.controller.storage_error.observe(self._on_storage_error)
        self.protocol("WM_DELETE_WINDOW", self.close)

    def _on_navigate(self, navigate: bool) -> None:
        if navigate:
            self.controller.done_navigating()
            self.close()

    def _on_storage_error(self, error: Optional[Exception]) -> None:
        if error is None:
            return
        self.controller.done_showing_error()
        self.parent._flash(f"Could not save your rating: {error}")

    def close(self) -> None:
        self.controller.on_cleared()
        if self.parent.quality_dialog is self:
            self.parent.quality_dialog = None
        self.destroy()


class AnalyticsView(ctk.CTkToplevel):
    """A toplevel window charting how long each night lasted."""

    def __init__(self, parent: ctk.CTk, nights: list[SleepNight]) -> None:
        super().__init__(parent)
        self.title("Sleep Analytics")
        self.geometry("800x500")
        self.resizable(True, True)

        self.chart_frame = ctk.CTkFrame(self)
        self.chart_frame.pack(fill="both", expand=True, padx=10, pady=5)
        df = summarize_nights(nights)
        fig = build_hours_figure(df)
        self.canvas = FigureCanvasTkAgg(fig, master=self.chart_frame)
        self.canvas.draw()
        self.canvas.get_tk_widget().pack(fill="both", expand=True)

        # Average hours per quality rating below the chart.
        summary = quality_summary(df)
        text = "  |  ".join(f"{label}: {hours:0.1f}h" for label, hours in summary.items())
        ctk.CTkLabel(self, text=text or "No rated nights yet", anchor="w").pack(fill="x", padx=10, pady=(0, 10))
