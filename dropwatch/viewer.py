"""Live two-panel terminal view over the internal and external stores."""

import logging

from rich.text import Text

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Static

from dropwatch.models import Category
from dropwatch.store import EventStore

logger = logging.getLogger(__name__)

PANE_TITLES = {
    Category.INTERNAL: "Internal dropped",
    Category.EXTERNAL: "External dropped",
}


class PaneState:
    """Scroll position of one panel. offset counts entries hidden below the window."""

    def __init__(self, category: Category, store: EventStore):
        self.category = category
        self.store = store
        self.offset = 0

    def scroll(self, delta: int):
        # Deepest offset that still shows the oldest entry.
        hidden = 1 if self.store.include_newest else 2
        limit = max(self.store.size() - hidden, 0)
        self.offset = min(max(self.offset + delta, 0), limit)

    def page(self, direction: int, height: int):
        self.scroll(direction * max(height, 1))

    def follow(self):
        self.offset = 0

    def window(self, height: int) -> list[str]:
        return self.store.get_range(self.offset, height)


def format_status(snap: dict) -> str:
    events = snap["events"]
    return (
        f"lines {snap['lines_read']}  "
        f"internal {events[Category.INTERNAL.value]}  "
        f"external {events[Category.EXTERNAL.value]}  "
        f"malformed {snap['malformed']}  "
        f"ignored {snap['ignored']}"
    )


class DropPane(Static):
    def __init__(self, state: PaneState, **kwargs):
        super().__init__("", **kwargs)
        self.state = state
        self.border_title = PANE_TITLES[state.category]

    def render_window(self, active: bool):
        lines = self.state.window(self.content_size.height)
        # Plain Text: log lines contain brackets that markup would eat.
        self.update(Text("\n".join(lines)))
        self.border_subtitle = f"-{self.state.offset}" if self.state.offset else ""
        self.set_class(active, "-active")


class DropwatchApp(App):
    TITLE = "dropwatch"

    DEFAULT_CSS = """
    #status {
        height: 1;
        padding: 0 1;
    }
    #panes {
        height: 1fr;
    }
    DropPane {
        width: 1fr;
        height: 100%;
        border: round $panel;
    }
    DropPane.-active {
        border: round $accent;
    }
    #internal {
        color: red;
    }
    #external {
        color: yellow;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("left", "select('internal')", "Internal", show=True),
        Binding("right", "select('external')", "External", show=True),
        Binding("up,k", "scroll(1)", "Older", show=True),
        Binding("down,j", "scroll(-1)", "Newer", show=True),
        Binding("pageup", "page(1)", "Page up", show=False),
        Binding("pagedown", "page(-1)", "Page down", show=False),
        Binding("end", "follow", "Follow", show=True),
    ]

    def __init__(self, stores: dict[Category, EventStore], stats, ingestor=None,
                 refresh_interval: float = 1.0):
        super().__init__()
        self._panes = {category: PaneState(category, store) for category, store in stores.items()}
        self._stats = stats
        self._ingestor = ingestor
        self._refresh_interval = refresh_interval
        self._active = Category.INTERNAL

    def compose(self) -> ComposeResult:
        yield Static("", id="status")
        with Horizontal(id="panes"):
            yield DropPane(self._panes[Category.INTERNAL], id="internal")
            yield DropPane(self._panes[Category.EXTERNAL], id="external")
        yield Footer()

    def on_mount(self) -> None:
        self.set_interval(self._refresh_interval, self.refresh_panes)
        self.call_after_refresh(self.refresh_panes)

    def on_resize(self, event) -> None:
        self.call_after_refresh(self.refresh_panes)

    def refresh_panes(self) -> None:
        if self._ingestor is not None and self._ingestor.error is not None:
            logger.error("Ingestion failed, closing viewer")
            self.exit()
            return

        for pane in self.query(DropPane):
            pane.render_window(pane.state.category is self._active)
        self.query_one("#status", Static).update(Text(format_status(self._stats.snapshot())))

    def _active_pane(self) -> DropPane:
        return self.query_one(f"#{self._active.value}", DropPane)

    def action_select(self, name: str) -> None:
        self._active = Category(name)
        self.refresh_panes()

    def action_scroll(self, delta: int) -> None:
        self._panes[self._active].scroll(delta)
        self.refresh_panes()

    def action_page(self, direction: int) -> None:
        height = self._active_pane().content_size.height
        self._panes[self._active].page(direction, height)
        self.refresh_panes()

    def action_follow(self) -> None:
        self._panes[self._active].follow()
        self.refresh_panes()
