"""Layer indicator widget."""

import logging

from textual.widgets import Static

from kanata_status.models import IndicatorState

logger = logging.getLogger(__name__)


class LayerIndicator(Static):
    """Shows the active kanata layer. Implements DisplayPort.

    Starts hidden with placeholder text; the core shows it once the first
    layer event arrives and hides it on disconnect.
    """

    DEFAULT_CSS = """
    LayerIndicator {
        width: auto;
        height: 3;
        padding: 0 2;
        content-align: center middle;
        border: round $accent;
        text-style: bold;
    }
    """

    def __init__(self, **kwargs):
        self.indicator_state = IndicatorState()
        super().__init__(self.indicator_state.text, **kwargs)
        self.display = self.indicator_state.visible

    def set_layer(self, text: str) -> None:
        self.indicator_state.text = text
        self.update(text)

    def set_visible(self, visible: bool) -> None:
        self.indicator_state.visible = visible
        self.display = visible

    def destroy(self) -> None:
        # the app owns the widget tree; just blank it
        self.set_visible(False)
        self.set_layer("")
