"""
ChartReplay – Application Ports
=================================
Interfaces que la capa de aplicación consume; la infraestructura
y los adaptadores de charting las implementan.
"""

from chartreplay.application.ports.candle_data_provider import ICandleDataProvider
from chartreplay.application.ports.chart_pane import (
    IPriceSeries,
    ITimeScale,
    LogicalRange,
    PaneContext,
)
from chartreplay.application.ports.event_sink import EventHandler, IEventSink

__all__ = [
    "ICandleDataProvider",
    "IPriceSeries",
    "ITimeScale",
    "LogicalRange",
    "PaneContext",
    "EventHandler",
    "IEventSink",
]
