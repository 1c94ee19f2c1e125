import threading
from typing import Optional
from rich.live import Live
from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.progress_bar import ProgressBar
from rich.text import Text
from rich.box import ROUNDED, SIMPLE
from wbc.ui.state import UIState

# Active jobs shown before collapsing into "+N more"
MAX_ACTIVE_ROWS = 8

class Dashboard:
    """Live progress display for a conversion run."""

    def __init__(self, state: UIState, refresh_per_second: int = 4, console: Optional[Console] = None):
        self.state = state
        self.refresh_per_second = refresh_per_second
        self.console = console or Console()
        self._live: Optional[Live] = None
        self._refresh_thread: Optional[threading.Thread] = None
        self._stop_refresh = threading.Event()
        self._ui_lock = threading.Lock()

    # --- Formatters ---

    def format_size(self, size: int) -> str:
        """Format size: 123B, 1.2KB, 45.1MB, 3.2GB."""
        if size == 0:
            return "0B"
        units = ['B', 'KB', 'MB', 'GB', 'TB']
        idx = 0
        val = float(size)
        while val >= 1024.0 and idx < len(units) - 1:
            val /= 1024.0
            idx += 1
        if idx == 0:
            return f"{int(val)}B"
        return f"{val:.1f}{units[idx]}"

    def format_time(self, seconds: Optional[float]) -> str:
        """Format time: 59s, 01m 01s, 1h 01m."""
        if seconds is None:
            return "--:--"
        if seconds < 60:
            return f"{int(seconds)}s"
        if seconds < 3600:
            return f"{int(seconds // 60):02d}m {int(seconds % 60):02d}s"
        return f"{int(seconds // 3600)}h {int((seconds % 3600) // 60):02d}m"

    def estimate_remaining(self) -> Optional[float]:
        """Linear ETA from elapsed time and processed count."""
        with self.state._lock:
            elapsed = self.state.elapsed_seconds()
            done = self.state.processed_count
            total = self.state.total_files
        if elapsed is None or done == 0 or total == 0:
            return None
        return max(0.0, elapsed / done * (total - done))

    # --- Panels ---

    def _status_style(self) -> str:
        with self.state._lock:
            if self.state.finished:
                return "bold red" if self.state.error_message else "bold green"
            return "bold cyan"

    def _generate_status_panel(self) -> Panel:
        with self.state._lock:
            status = self.state.status_message
            title = self.state.ui_title
        return Panel(Text(status, style=self._status_style()), title=title, box=ROUNDED)

    def _generate_progress_panel(self) -> Panel:
        with self.state._lock:
            total = self.state.total_files
            completed = self.state.completed_count
            failed = self.state.failed_count
            output_bytes = self.state.total_output_bytes
        elapsed = self.state.elapsed_seconds()

        header = Text()
        header.append(f"{completed}/{total} converted", style="green")
        if failed:
            header.append(f"  {failed} failed", style="red")
        header.append(f"  | out {self.format_size(output_bytes)}")
        header.append(f"  | elapsed {self.format_time(elapsed)}")
        header.append(f"  | ETA {self.format_time(self.estimate_remaining())}")

        bar = ProgressBar(total=max(total, 1), completed=completed)
        return Panel(Group(header, bar), title="Progress", box=ROUNDED)

    def _generate_active_panel(self) -> Panel:
        with self.state._lock:
            active = list(self.state.active_jobs)
        table = Table(box=SIMPLE, show_header=False, expand=True)
        table.add_column("file")
        for job in active[:MAX_ACTIVE_ROWS]:
            table.add_row(f"» {job.input_path.name}")
        if len(active) > MAX_ACTIVE_ROWS:
            table.add_row(f"+{len(active) - MAX_ACTIVE_ROWS} more")
        if not active:
            table.add_row(Text("idle", style="dim"))
        return Panel(table, title=f"Active ({len(active)})", box=ROUNDED)

    def _generate_failures_panel(self) -> Optional[Panel]:
        failures = self.state.snapshot_failures()
        if not failures:
            return None
        table = Table(box=SIMPLE, show_header=False, expand=True)
        table.add_column("file", style="red", no_wrap=True)
        table.add_column("error", overflow="fold")
        for name, message in failures:
            table.add_row(f"✗ {name}", message)
        return Panel(table, title="Recent failures", box=ROUNDED)

    def create_display(self) -> RenderableType:
        panels = [
            self._generate_status_panel(),
            self._generate_progress_panel(),
        ]
        if self.state.config_lines:
            panels.insert(1, Panel(Text("\n".join(self.state.config_lines)), title="Settings", box=ROUNDED))
        if not self.state.finished:
            panels.append(self._generate_active_panel())
        failures = self._generate_failures_panel()
        if failures is not None:
            panels.append(failures)
        return Group(*panels)

    # --- Lifecycle ---

    def _refresh_loop(self):
        interval = 1.0 / self.refresh_per_second
        while not self._stop_refresh.wait(interval):
            if self._live:
                display = self.create_display()
                with self._ui_lock:
                    self._live.update(display)

    def start(self):
        self._live = Live(self.create_display(), console=self.console, refresh_per_second=self.refresh_per_second)
        self._live.start()
        self._stop_refresh.clear()
        self._refresh_thread = threading.Thread(target=self._refresh_loop, daemon=True)
        self._refresh_thread.start()
        return self

    def stop(self):
        self._stop_refresh.set()
        if self._refresh_thread:
            self._refresh_thread.join(timeout=1.0)
        if self._live:
            # Final update to show the terminal status
            with self._ui_lock:
                self._live.update(self.create_display())
            self._live.stop()
            self._live = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
