"""textual-kanata: Textual indicator for the active kanata layer."""

__version__ = "0.1.0"

# Public API
from textual_kanata.app import KanataStatusApp
from textual_kanata.controller import KanataStatusController
from textual_kanata.widgets import LayerIndicator

__all__ = [
    "__version__",
    # Primary components
    "KanataStatusApp",
    "KanataStatusController",
    "LayerIndicator",
]
