"""Session context.

A ``MapSession`` owns one map's index and layout plus the three pieces of
mutable UI state: focus (``SelectionController``), the view window
(``ViewportController``) and the layer/search toggles. Commands are looked up
in ``COMMANDS`` so hosts can bind gestures and keys to names instead of
closures. Renderers subscribe to ``SessionEvent`` notifications.

A session has a single writer. Hosts that receive commands on several threads
must serialize them (see ``server.py``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .graph import GraphIndex
from .layout import Layout, LayoutConfig, LayoutEngine
from .models import Dataset
from .search import DEFAULT_LIMIT, search_nodes
from .selection import SelectionController, VisualDiff, VisualState
from .viewport import ScreenRect, ViewportConfig, ViewportController, ViewWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionEvent:
    kind: str  # selection|viewport|layer|search
    changed: Optional[VisualDiff] = None


SessionListener = Callable[["MapSession", SessionEvent], None]


COMMANDS: Dict[str, str] = {
    "select": "select",
    "select_node": "select",
    "select_branch": "select_branch",
    "select_center": "select_center",
    "deselect": "deselect",
    "pan": "pan",
    "zoom": "zoom",
    "zoom_at": "zoom",
    "zoom_in": "zoom_in",
    "zoom_out": "zoom_out",
    "reset_view": "reset_view",
    "reset": "reset",
    "toggle_connections": "toggle_connections",
    "search": "search",
    "open_result": "open_result",
    "jump": "jump",
    "toggle_search": "toggle_search",
    "close_search": "close_search",
    "key": "key",
}


class UnknownCommandError(KeyError):
    pass


class MapSession:
    def __init__(
        self,
        dataset: Dataset,
        *,
        layout_config: LayoutConfig | None = None,
        viewport_config: ViewportConfig | None = None,
        screen: ScreenRect | None = None,
        search_limit: int = DEFAULT_LIMIT,
    ):
        self.dataset = dataset
        self.index = GraphIndex(dataset)
        self.layout: Layout = LayoutEngine(layout_config).compute(self.index)
        self.selection = SelectionController(self.index)
        self.viewport = ViewportController(viewport_config, screen)
        self.search_limit = search_limit

        self.show_connections = True
        self.search_open = False
        self.search_query = ""
        self.search_results: List[str] = []

        self._listeners: List[SessionListener] = []
        self.selection.subscribe(self._on_selection)

    # --- Notifications ---

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            listener(self, event)

    def _on_selection(self, previous: VisualState, current: VisualState) -> None:
        self._emit(SessionEvent("selection", previous.diff(current)))

    # --- State accessors ---

    @property
    def visual(self) -> VisualState:
        return self.selection.visual

    @property
    def window(self) -> ViewWindow:
        return self.viewport.window

    def dispatch(self, command: str, **kwargs: Any) -> Any:
        name = COMMANDS.get((command or "").strip().lower())
        if name is None:
            raise UnknownCommandError(command)
        logger.debug("dispatch %s %s", name, kwargs)
        return getattr(self, name)(**kwargs)

    # --- Selection ---

    def select(self, node_id: str) -> bool:
        return self.selection.select_node(node_id)

    def select_branch(self, key: str) -> bool:
        return self.selection.select_branch(key)

    def select_center(self) -> bool:
        return self.selection.select_center()

    def deselect(self) -> bool:
        return self.selection.deselect()

    # --- Viewport ---

    def _viewport_changed(self, changed: bool) -> bool:
        if changed:
            self._emit(SessionEvent("viewport"))
        return changed

    def pan(self, dx: float, dy: float) -> bool:
        self.viewport.pan(float(dx), float(dy))
        return self._viewport_changed(True)

    def zoom(self, factor: float, x: float | None = None, y: float | None = None) -> bool:
        """Zoom anchored at screen point (x, y); the screen center by default."""
        cx, cy = self.viewport.screen.center
        anchor_x = cx if x is None else float(x)
        anchor_y = cy if y is None else float(y)
        return self._viewport_changed(self.viewport.zoom_at(float(factor), anchor_x, anchor_y))

    def zoom_in(self) -> bool:
        return self._viewport_changed(self.viewport.zoom_in())

    def zoom_out(self) -> bool:
        return self._viewport_changed(self.viewport.zoom_out())

    def reset_view(self) -> bool:
        self.viewport.reset()
        return self._viewport_changed(True)

    def reset(self) -> bool:
        """Clear the selection and restore the default framing."""
        self.deselect()
        return self.reset_view()

    def jump(self, entity_id: str) -> bool:
        """Center the view on an entity; the selection is not touched."""
        pos = self.layout.position(entity_id)
        if pos is None:
            return False
        self.viewport.center_on(*pos)
        return self._viewport_changed(True)

    # --- Layers ---

    def toggle_connections(self, on: bool | None = None) -> bool:
        self.show_connections = (not self.show_connections) if on is None else bool(on)
        self._emit(SessionEvent("layer"))
        return self.show_connections

    # --- Search ---

    def search(self, query: str) -> List[str]:
        """Run a search; a blank query is ignored and keeps the previous results."""
        query = (query or "").strip()
        if not query:
            return []
        self.search_query = query
        self.search_results = search_nodes(self.index.nodes, query, self.search_limit)
        self._emit(SessionEvent("search"))
        return list(self.search_results)

    def open_result(self, node_id: str) -> bool:
        """Select a search hit, bring it into view and close the search box."""
        if not self.select(node_id):
            return False
        self.close_search()
        self.jump(node_id)
        return True

    def toggle_search(self) -> bool:
        if self.search_open:
            self.close_search()
        else:
            self.search_open = True
            self._emit(SessionEvent("search"))
        return self.search_open

    def close_search(self) -> bool:
        was_open = self.search_open
        self.search_open = False
        self.search_query = ""
        self.search_results = []
        self._emit(SessionEvent("search"))
        return was_open

    # --- Keyboard ---

    def key(self, name: str, *, ctrl: bool = False, meta: bool = False, typing: bool = False) -> bool:
        """Keyboard bindings: Escape clears selection and search, '/' toggles search."""
        if name == "Escape":
            self.deselect()
            self.close_search()
            return True
        if name == "/" and not (ctrl or meta or typing):
            self.toggle_search()
            return True
        return False

    def snapshot(self) -> Dict[str, Any]:
        w = self.window
        visual = self.visual
        return {
            "focus": visual.focus.describe(),
            "window": {"x": w.x, "y": w.y, "width": w.width, "height": w.height},
            "show_connections": self.show_connections,
            "search_open": self.search_open,
            "highlighted": sorted(visual.highlighted),
            "dimmed": len(visual.dimmed),
        }
