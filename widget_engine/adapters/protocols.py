"""Collaborator interfaces consumed by the render engine.

The live-data transport and the outbound command transport live outside
the engine. The engine only needs:
- LiveDataAdapter.subscribe(widget, config) -> current sample view
- CommandChannel.bind(data_source) -> CommandBinding
"""

from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from widget_engine.resolution.schemas import WidgetDescriptor

CommandSender = Callable[..., Awaitable[None]]


@dataclass(frozen=True)
class CommandBinding:
    """Command senders and in-flight state for one widget's actuator.

    Passed through to renderers unchanged. Senders are coroutine functions
    ``send(target_key, value)``; the engine never awaits them.
    """

    send_command: Optional[CommandSender] = None
    fan_send_command: Optional[CommandSender] = None
    command_control_send_command: Optional[CommandSender] = None
    is_sending: bool = False
    connected: bool = False


@runtime_checkable
class LiveDataAdapter(Protocol):
    """Source of live sample views.

    ``config`` is the widget's raw configuration plus ``bufferSize``.
    Called on every render pass; must keep the existing subscription
    unless the subscription key (topic, keys, buffer size) changed.
    """

    def subscribe(self, widget: WidgetDescriptor, config: Mapping[str, Any]) -> Any:
        ...


@runtime_checkable
class CommandChannel(Protocol):
    """Outbound command transport for writable widgets."""

    def bind(self, data_source: Mapping[str, Any]) -> CommandBinding:
        ...
