"""
Panel widgets:
- KnobWidget: rotary parameter control
- AmplitudeMeterWidget: scrolling amplitude trace
"""

from patchview.ui.widgets.knob import KnobWidget
from patchview.ui.widgets.meter import AmplitudeMeterWidget

__all__ = [
    "KnobWidget",
    "AmplitudeMeterWidget",
]
