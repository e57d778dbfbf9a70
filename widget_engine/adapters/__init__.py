"""Collaborators at the edge of the render engine.

Protocols for the live data adapter and the command channel, plus
in-memory implementations fed through the HTTP API.
"""

from .dot_path import get_by_dot_path, set_by_dot_path
from .memory import (
    CommandChannelError,
    InMemoryCommandChannel,
    InMemoryLiveDataAdapter,
    SentCommand,
    get_command_channel,
    get_live_data_adapter,
    resolve_command_topic,
    resolve_live_topic,
)
from .protocols import CommandBinding, CommandChannel, CommandSender, LiveDataAdapter

__all__ = [
    "CommandBinding",
    "CommandChannel",
    "CommandChannelError",
    "CommandSender",
    "InMemoryCommandChannel",
    "InMemoryLiveDataAdapter",
    "LiveDataAdapter",
    "SentCommand",
    "get_by_dot_path",
    "get_command_channel",
    "get_live_data_adapter",
    "resolve_command_topic",
    "resolve_live_topic",
    "set_by_dot_path",
]
