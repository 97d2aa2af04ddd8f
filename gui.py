"""
Soundlytics GUI - Music Intelligence Dashboard

A dark single-window dashboard: import or record a clip (or describe a
sound), preview it with the ambient visualizer, run the analysis and read
the result as genre, radar, metadata and context panels.
"""

import logging
import tkinter as tk
from pathlib import Path
from tkinter import filedialog, messagebox
from typing import Any, Dict, List, Optional, Tuple

from soundlytics.capture.playback import AudioPlayer
from soundlytics.core.models import AnalysisResult
from soundlytics.core.session import AnalysisSession, create_session
from soundlytics.core.state import AnalysisStatus, AppState
from soundlytics.utils.config import load_config
from soundlytics.utils.errors import AnalysisBusyError, SoundlyticsError
from soundlytics.utils.logging import setup_logging_from_config
from soundlytics.utils.translations import Language, get_strings
from soundlytics.visualization.bars import create_visualizer
from soundlytics.visualization.radar import RadarChartRenderer


class NeonStyle:
    """Dark slate color scheme with indigo and fuchsia accents."""

    NAME = "Neon"

    # Backgrounds
    BG_DARK = "#020617"      # Slate 950
    BG_MEDIUM = "#0f172a"    # Slate 900
    BG_LIGHT = "#1e293b"     # Slate 800
    BG_HOVER = "#334155"     # Slate 700

    # Text Colors
    TEXT_PRIMARY = "#f8fafc"
    TEXT_SECONDARY = "#cbd5e1"
    TEXT_DIM = "#64748b"
    TEXT_DISABLED = "#475569"

    # Accents
    ACCENT = "#6366f1"        # Indigo 500
    ACCENT_LIGHT = "#818cf8"  # Indigo 400
    ACCENT_ALT = "#d946ef"    # Fuchsia 500
    ERROR = "#f87171"         # Red 400

    BORDER = "#1e293b"

    # Fonts
    FONT_TITLE = ("Helvetica", 18, "bold")
    FONT_HERO = ("Helvetica", 28, "bold")
    FONT_HEADING = ("Helvetica", 11, "bold")
    FONT_BODY = ("Helvetica", 10, "normal")
    FONT_SMALL = ("Helvetica", 9, "normal")
    FONT_GENRE = ("Helvetica", 32, "bold")

    @classmethod
    def configure_widget(cls, widget, bg=None, fg=None, font=None, relief="flat", bd=0):
        """Configure widget with the dashboard style."""
        style_config = {
            "bg": bg or cls.BG_DARK,
            "fg": fg or cls.TEXT_PRIMARY,
            "font": font or cls.FONT_BODY,
            "relief": relief,
            "bd": bd,
            "highlightthickness": 0,
        }
        widget.config(**style_config)


class SoundlyticsGUI:
    """Main GUI application for Soundlytics."""

    RADAR_SIZE = 260
    PLAYBACK_POLL_MS = 200

    def __init__(self, root: tk.Tk, session: AnalysisSession, config: Dict[str, Any]):
        self.root = root
        self.root.title("Soundlytics - Neural Music Intelligence")
        self.root.geometry("1200x820")

        self.style = NeonStyle
        self.root.configure(bg=self.style.BG_DARK)

        self.session = session
        self.config = config
        self.player = AudioPlayer()
        self.logger = logging.getLogger("gui")

        # Widgets whose text comes from the string table: (widget, key)
        self._localized: List[Tuple[tk.Widget, str]] = []
        self._showing_placeholder = False
        self._rendered_result: Optional[AnalysisResult] = None
        self._rendered_language: Optional[Language] = None

        # Build UI
        self._build_ui()

        # Session callbacks arrive on worker threads; hop onto the Tk loop
        self._unsubscribe = self.session.subscribe(
            lambda state: self.root.after(0, self._render, state)
        )
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

        self.visualizer.start()
        self._render(self.session.state)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _build_ui(self):
        """Build the user interface."""
        s = self.style

        # Title bar with language toggle
        title_frame = tk.Frame(self.root, bg=s.BG_DARK, pady=16)
        title_frame.pack(fill=tk.X)

        brand = tk.Frame(title_frame, bg=s.BG_DARK)
        brand.pack(side=tk.LEFT, padx=24)
        self._label(brand, "title", font=s.FONT_TITLE).pack(anchor=tk.W)
        self._label(brand, "subtitle", fg=s.TEXT_DIM, font=s.FONT_SMALL).pack(anchor=tk.W)

        lang_frame = tk.Frame(title_frame, bg=s.BG_DARK)
        lang_frame.pack(side=tk.RIGHT, padx=24)
        self._label(lang_frame, "language", fg=s.TEXT_SECONDARY, font=s.FONT_SMALL).pack(
            side=tk.LEFT, padx=(0, 8)
        )
        self.lang_button = self._create_button(lang_frame, "", self._toggle_language, s.BG_LIGHT)
        self.lang_button.pack(side=tk.LEFT)

        # Hero
        hero = tk.Frame(self.root, bg=s.BG_DARK, padx=24)
        hero.pack(fill=tk.X)
        hero_title = tk.Frame(hero, bg=s.BG_DARK)
        hero_title.pack(anchor=tk.W)
        self._label(hero_title, "hero_title_1", font=s.FONT_HERO).pack(side=tk.LEFT)
        self._label(hero_title, "hero_title_2", fg=s.ACCENT_LIGHT, font=s.FONT_HERO).pack(
            side=tk.LEFT, padx=(10, 0)
        )
        self._label(
            hero, "hero_desc", fg=s.TEXT_DIM, font=s.FONT_BODY, wraplength=900, justify=tk.LEFT
        ).pack(anchor=tk.W, pady=(4, 12))

        body = tk.Frame(self.root, bg=s.BG_DARK, padx=24, pady=8)
        body.pack(fill=tk.BOTH, expand=True)
        body.columnconfigure(0, weight=2, uniform="col")
        body.columnconfigure(1, weight=3, uniform="col")
        body.rowconfigure(0, weight=1)

        self._build_input_panel(body)
        self._build_results_panel(body)

        self._label(self.root, "footer_rights", fg=s.TEXT_DISABLED, font=s.FONT_SMALL).pack(
            side=tk.BOTTOM, pady=8
        )

    def _build_input_panel(self, parent):
        s = self.style
        panel = tk.Frame(parent, bg=s.BG_MEDIUM, padx=16, pady=16)
        panel.grid(row=0, column=0, sticky="nsew", padx=(0, 12))

        # File import
        self._label(panel, "import_audio", font=s.FONT_HEADING, bg=s.BG_MEDIUM).pack(anchor=tk.W)
        file_row = tk.Frame(panel, bg=s.BG_MEDIUM)
        file_row.pack(fill=tk.X, pady=(6, 12))
        self.browse_button = self._create_button(file_row, "", self._load_file, s.ACCENT)
        self._localize(self.browse_button, "drag_browse")
        self.browse_button.pack(side=tk.LEFT)

        # Live capture
        self._label(panel, "live_sensor", font=s.FONT_HEADING, bg=s.BG_MEDIUM).pack(anchor=tk.W)
        mic_row = tk.Frame(panel, bg=s.BG_MEDIUM)
        mic_row.pack(fill=tk.X, pady=(6, 12))
        self.record_button = self._create_button(mic_row, "", self._toggle_recording, s.BG_LIGHT)
        self.record_button.pack(side=tk.LEFT)

        # Loaded clip + preview
        clip_frame = tk.Frame(panel, bg=s.BG_LIGHT, padx=10, pady=10)
        clip_frame.pack(fill=tk.X, pady=(0, 12))
        self.clip_label = tk.Label(clip_frame, text="", anchor=tk.W)
        s.configure_widget(self.clip_label, bg=s.BG_LIGHT, fg=s.TEXT_SECONDARY, font=s.FONT_SMALL)
        self.clip_label.pack(fill=tk.X)

        self.viz_canvas = tk.Canvas(
            clip_frame, height=64, bg=s.BG_LIGHT, highlightthickness=0, bd=0
        )
        self.viz_canvas.pack(fill=tk.X, pady=6)
        self.visualizer = create_visualizer(self.viz_canvas, self.config.get("visualizer", {}))

        controls = tk.Frame(clip_frame, bg=s.BG_LIGHT)
        controls.pack(fill=tk.X)
        self.play_button = self._create_button(controls, "", self._toggle_playback, s.BG_HOVER)
        self.play_button.pack(side=tk.LEFT)
        self.clear_button = self._create_button(controls, "", self._clear_audio, s.BG_HOVER)
        self._localize(self.clear_button, "clear")
        self.clear_button.pack(side=tk.LEFT, padx=(8, 0))

        # Text description
        self._label(panel, "descriptor_module", font=s.FONT_HEADING, bg=s.BG_MEDIUM).pack(
            anchor=tk.W
        )
        self.text_input = tk.Text(
            panel, height=5, wrap=tk.WORD, bg=s.BG_LIGHT, fg=s.TEXT_PRIMARY,
            insertbackground=s.TEXT_PRIMARY, relief="flat", bd=0, highlightthickness=0,
            font=s.FONT_BODY, padx=8, pady=8,
        )
        self.text_input.pack(fill=tk.X, pady=(6, 12))
        self.text_input.bind("<FocusIn>", self._on_text_focus_in)
        self.text_input.bind("<FocusOut>", self._on_text_focus_out)
        self.text_input.bind("<KeyRelease>", self._on_text_changed)

        # Analyze + inline error
        self.analyze_button = self._create_button(
            panel, "", self._start_analysis, s.ACCENT, font=s.FONT_HEADING
        )
        self.analyze_button.pack(fill=tk.X, ipady=6)

        self.error_label = tk.Label(panel, text="", anchor=tk.W, justify=tk.LEFT, wraplength=380)
        s.configure_widget(self.error_label, bg=s.BG_MEDIUM, fg=s.ERROR, font=s.FONT_SMALL)
        self.error_label.pack(fill=tk.X, pady=(8, 0))

    def _build_results_panel(self, parent):
        s = self.style
        self.results_frame = tk.Frame(parent, bg=s.BG_MEDIUM, padx=16, pady=16)
        self.results_frame.grid(row=0, column=1, sticky="nsew")

        header = tk.Frame(self.results_frame, bg=s.BG_MEDIUM)
        header.pack(fill=tk.X)
        self.export_button = self._create_button(header, "", self._export_result, s.BG_LIGHT)
        self._localize(self.export_button, "export")
        self.export_button.pack(side=tk.RIGHT)

        self.results_body = tk.Frame(self.results_frame, bg=s.BG_MEDIUM)
        self.results_body.pack(fill=tk.BOTH, expand=True)

    def _label(self, parent, key: str, **options) -> tk.Label:
        """Label whose text follows the selected language."""
        s = self.style
        label = tk.Label(parent, text="")
        s.configure_widget(
            label,
            bg=options.pop("bg", parent.cget("bg")),
            fg=options.pop("fg", None),
            font=options.pop("font", None),
        )
        if options:
            label.config(**options)
        self._localize(label, key)
        return label

    def _localize(self, widget: tk.Widget, key: str) -> None:
        self._localized.append((widget, key))

    def _create_button(self, parent, text, command, color, font=None, state=tk.NORMAL):
        """Create a flat button with consistent styling."""
        s = self.style
        btn = tk.Button(
            parent,
            text=text,
            command=command,
            bg=color,
            fg=s.TEXT_PRIMARY,
            activebackground=s.BG_HOVER,
            activeforeground=s.TEXT_PRIMARY,
            disabledforeground=s.TEXT_DISABLED,
            font=font or s.FONT_BODY,
            relief="flat",
            bd=0,
            padx=12,
            pady=6,
            highlightthickness=0,
            cursor="hand2",
            state=state,
        )
        return btn

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render(self, state: AppState):
        """Bring every widget in line with the session state."""
        if not self.root.winfo_exists():
            return
        t = get_strings(state.language)

        if state.language != self._rendered_language:
            for widget, key in self._localized:
                widget.config(text=t[key])
            self.lang_button.config(text=state.language.value.upper())

        # Input panel
        self.record_button.config(text=t["stop_capture"] if state.capturing else t["use_mic"])
        self.browse_button.config(state=tk.DISABLED if state.capturing else tk.NORMAL)

        if state.capturing:
            self.clip_label.config(text=t["capturing"])
        elif state.audio is not None:
            duration = (
                f" - {state.audio.duration:.1f}s" if state.audio.duration is not None else ""
            )
            self.clip_label.config(text=f"{t['signal_locked']}: {state.audio.file_name}{duration}")
        else:
            self.clip_label.config(text="")

        has_audio = state.audio is not None
        self.play_button.config(
            text=t["pause"] if self.player.is_playing else t["play"],
            state=tk.NORMAL if has_audio else tk.DISABLED,
        )
        self.clear_button.config(state=tk.NORMAL if has_audio else tk.DISABLED)
        if not has_audio and self.player.is_playing:
            self._stop_playback()

        self._sync_text_widget(state, t)

        self.analyze_button.config(
            text=t["btn_processing"] if state.is_submitting else t["btn_generate"],
            state=tk.NORMAL if state.can_submit else tk.DISABLED,
        )
        self.error_label.config(text=t.get(state.error_key, "") if state.error_key else "")

        # Results
        if state.analysis is not self._rendered_result or state.language != self._rendered_language:
            self._display_result(state.analysis, state.language)
        self.export_button.config(
            state=tk.NORMAL if state.status is AnalysisStatus.DONE else tk.DISABLED
        )

        self._rendered_result = state.analysis
        self._rendered_language = state.language

    def _sync_text_widget(self, state: AppState, t: Dict[str, str]):
        # Placeholder only while the box is empty and unfocused
        if not state.text_input and self.root.focus_get() is not self.text_input:
            self._show_placeholder(t["placeholder_text"])
            return
        if self._showing_placeholder:
            self._on_text_focus_in()
        if self._current_text() != state.text_input:
            self.text_input.delete("1.0", tk.END)
            self.text_input.insert("1.0", state.text_input)

    def _display_result(self, result: Optional[AnalysisResult], language: Language):
        """Rebuild the results panel."""
        s = self.style
        for child in self.results_body.winfo_children():
            child.destroy()
        if result is None:
            return

        t = get_strings(language)
        td = result.technical_details

        # Primary ID
        self._static(self.results_body, t["digital_id"].upper(), fg=s.TEXT_DIM,
                     font=s.FONT_SMALL).pack(anchor=tk.W)
        self._static(self.results_body, result.primary_genre, font=s.FONT_GENRE,
                     wraplength=600).pack(anchor=tk.W)
        self._static(
            self.results_body,
            f"{t['confidence_rating']}: {result.confidence_score}%",
            fg=s.ACCENT_LIGHT, font=s.FONT_HEADING,
        ).pack(anchor=tk.W, pady=(0, 6))
        self._static(self.results_body, result.description, fg=s.TEXT_SECONDARY,
                     wraplength=640, justify=tk.LEFT).pack(anchor=tk.W, pady=(0, 12))

        grid = tk.Frame(self.results_body, bg=s.BG_MEDIUM)
        grid.pack(fill=tk.BOTH, expand=True)
        grid.columnconfigure(0, weight=1)
        grid.columnconfigure(1, weight=1)

        # Radar map
        radar_frame = tk.Frame(grid, bg=s.BG_LIGHT, padx=10, pady=10)
        radar_frame.grid(row=0, column=0, sticky="nsew", padx=(0, 6), pady=(0, 6))
        self._static(radar_frame, t["genre_mapping"].upper(), bg=s.BG_LIGHT, fg=s.TEXT_DIM,
                     font=s.FONT_SMALL).pack(anchor=tk.W)
        radar_canvas = tk.Canvas(
            radar_frame, width=self.RADAR_SIZE, height=self.RADAR_SIZE,
            bg=s.BG_LIGHT, highlightthickness=0, bd=0,
        )
        radar_canvas.pack()
        RadarChartRenderer(radar_canvas).draw(result.sub_genres, self.RADAR_SIZE)

        # Technical metadata
        meta_frame = tk.Frame(grid, bg=s.BG_LIGHT, padx=10, pady=10)
        meta_frame.grid(row=0, column=1, sticky="nsew", pady=(0, 6))
        self._static(meta_frame, t["signal_metadata"].upper(), bg=s.BG_LIGHT, fg=s.TEXT_DIM,
                     font=s.FONT_SMALL).pack(anchor=tk.W, pady=(0, 6))
        for key, value in (
            ("tempo", td.bpm_estimate),
            ("harmonic_key", td.key_estimate),
            ("structure", td.time_signature),
        ):
            row = tk.Frame(meta_frame, bg=s.BG_LIGHT)
            row.pack(fill=tk.X, pady=2)
            self._static(row, t[key], bg=s.BG_LIGHT, fg=s.TEXT_DIM).pack(side=tk.LEFT)
            self._static(row, value, bg=s.BG_LIGHT, font=s.FONT_HEADING).pack(side=tk.RIGHT)

        # Tags
        tags_frame = tk.Frame(grid, bg=s.BG_LIGHT, padx=10, pady=10)
        tags_frame.grid(row=1, column=0, columnspan=2, sticky="nsew", pady=(0, 6))
        for key, values in (
            ("sonic_atmosphere", result.moods),
            ("layer_profile", result.instrumentation),
            ("proximity_network", result.similar_artists),
        ):
            self._static(tags_frame, t[key].upper(), bg=s.BG_LIGHT, fg=s.TEXT_DIM,
                         font=s.FONT_SMALL).pack(anchor=tk.W)
            self._static(tags_frame, "  ·  ".join(values), bg=s.BG_LIGHT, wraplength=640,
                         justify=tk.LEFT).pack(anchor=tk.W, pady=(0, 6))

        # Cultural context
        context_frame = tk.Frame(grid, bg=s.BG_LIGHT, padx=10, pady=10)
        context_frame.grid(row=2, column=0, columnspan=2, sticky="nsew")
        self._static(context_frame, t["historical_origin"].upper(), bg=s.BG_LIGHT,
                     fg=s.TEXT_DIM, font=s.FONT_SMALL).pack(anchor=tk.W)
        self._static(context_frame, result.cultural_context, bg=s.BG_LIGHT, wraplength=640,
                     justify=tk.LEFT).pack(anchor=tk.W)

    def _static(self, parent, text: str, **options) -> tk.Label:
        s = self.style
        label = tk.Label(parent, text=text)
        s.configure_widget(
            label,
            bg=options.pop("bg", s.BG_MEDIUM),
            fg=options.pop("fg", None),
            font=options.pop("font", None),
        )
        if options:
            label.config(**options)
        return label

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _toggle_language(self):
        current = self.session.state.language
        self.session.set_language(Language.TH if current is Language.EN else Language.EN)

    def _load_file(self):
        """Pick an audio file and hand it to the session."""
        file_path = filedialog.askopenfilename(
            title="Select Audio File",
            filetypes=[
                ("Audio Files", "*.wav *.mp3 *.flac *.aif *.aiff *.ogg *.m4a *.aac *.webm"),
                ("All Files", "*.*"),
            ],
        )
        if not file_path:
            return
        self._stop_playback()
        try:
            self.session.select_file(Path(file_path))
        except OSError as e:
            messagebox.showerror("Load Error", f"Failed to read {file_path}: {e}")

    def _toggle_recording(self):
        if self.session.state.capturing:
            self.session.stop_recording()
        else:
            self._stop_playback()
            self.session.start_recording()

    def _clear_audio(self):
        self._stop_playback()
        self.session.clear_audio()

    def _toggle_playback(self):
        audio = self.session.state.audio
        if audio is None:
            return
        if self.player.is_playing:
            self._stop_playback()
            return
        try:
            self.player.play(audio.playback_handle)
        except Exception as e:
            self.logger.warning(f"Playback failed for {audio.file_name}: {e}")
            messagebox.showerror("Playback Error", f"Cannot play {audio.file_name}: {e}")
            return
        self.visualizer.set_active(True)
        self._render(self.session.state)
        self.root.after(self.PLAYBACK_POLL_MS, self._check_playback)

    def _check_playback(self):
        if self.player.is_playing:
            self.root.after(self.PLAYBACK_POLL_MS, self._check_playback)
            return
        self.visualizer.set_active(False)
        self._render(self.session.state)

    def _stop_playback(self):
        self.player.stop()
        self.visualizer.set_active(False)

    def _on_text_focus_in(self, event=None):
        if self._showing_placeholder:
            self.text_input.delete("1.0", tk.END)
            self.text_input.config(fg=self.style.TEXT_PRIMARY)
            self._showing_placeholder = False

    def _on_text_focus_out(self, event=None):
        if not self._current_text():
            self._render(self.session.state)

    def _on_text_changed(self, event=None):
        if self._showing_placeholder:
            return
        text = self._current_text()
        if text != self.session.state.text_input:
            if text and self.session.state.audio is not None:
                self._stop_playback()
            self.session.set_text(text)

    def _current_text(self) -> str:
        if self._showing_placeholder:
            return ""
        return self.text_input.get("1.0", "end-1c")

    def _show_placeholder(self, text: str):
        self.text_input.delete("1.0", tk.END)
        self.text_input.insert("1.0", text)
        self.text_input.config(fg=self.style.TEXT_DIM)
        self._showing_placeholder = True

    def _start_analysis(self):
        """Submit the current input; the result arrives through the listener."""
        try:
            self.session.submit()
        except AnalysisBusyError as e:
            self.logger.info(f"Ignoring submit: {e}")

    def _export_result(self):
        """Export the current result as JSON."""
        result = self.session.state.analysis
        if result is None:
            messagebox.showinfo("Export", "No results to export")
            return

        file_path = filedialog.asksaveasfilename(
            title="Export Results",
            defaultextension=".json",
            filetypes=[("JSON Files", "*.json"), ("All Files", "*.*")],
        )
        if not file_path:
            return
        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(result.to_json(indent=2))
            messagebox.showinfo("Export Complete", f"Results exported to {file_path}")
        except OSError as e:
            messagebox.showerror("Export Error", f"Failed to export: {e}")

    def _on_close(self):
        self._unsubscribe()
        self.visualizer.stop()
        self._stop_playback()
        self.session.close()
        self.root.destroy()


def main():
    """Main entry point for GUI."""
    config = load_config()
    setup_logging_from_config(config)

    root = tk.Tk()
    try:
        session = create_session(config)
    except SoundlyticsError as e:
        root.withdraw()
        messagebox.showerror("Initialization Error", f"Failed to initialize: {e}")
        root.destroy()
        return

    SoundlyticsGUI(root, session, config)
    root.mainloop()


if __name__ == "__main__":
    main()
