"""In-memory live data adapter and command channel.

Reference collaborators for the render engine. No transport: payloads are
pushed with ``ingest(topic, payload)`` (the HTTP API does this) and
commands are recorded, or forwarded to an injected async publisher.

Topic conventions:
- live data:  dataSource.topic, else LIVE_TOPIC_TEMPLATE for device sources
- commands:   COMMAND_TOPIC_TEMPLATE with the source's deviceId
"""

import json
import logging
import os
import threading
from collections import deque
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from widget_engine.adapters.dot_path import get_by_dot_path, set_by_dot_path
from widget_engine.adapters.protocols import CommandBinding, CommandSender
from widget_engine.resolution.interpreter import (
    as_widget_descriptor,
    extract_telemetry_keys,
    normalize_source_type,
)
from widget_engine.resolution.schemas import DataSourceType, WidgetDescriptor

logger = logging.getLogger(__name__)

LIVE_TOPIC_TEMPLATE = os.environ.get(
    "LIVE_TOPIC_TEMPLATE", "kepler/devices/{device_id}/up/data"
)
COMMAND_TOPIC_TEMPLATE = os.environ.get(
    "COMMAND_TOPIC_TEMPLATE", "kepler/prod/delhi/rms-device/{device_id}/down/control"
)

# Used when a caller subscribes without a bufferSize
FALLBACK_BUFFER_SIZE = 20

_MISSING = object()


def resolve_live_topic(
    data_source: Mapping[str, Any], template: str = LIVE_TOPIC_TEMPLATE
) -> Optional[str]:
    """Topic a widget's live data arrives on, or None."""
    topic = data_source.get("topic")
    if topic:
        return str(topic)
    device_id = data_source.get("deviceId")
    if normalize_source_type(data_source.get("type")) == DataSourceType.DEVICE.value and device_id:
        return template.format(device_id=device_id)
    return None


def resolve_command_topic(
    source: Mapping[str, Any], template: str = COMMAND_TOPIC_TEMPLATE
) -> Optional[str]:
    """Control topic for a data source or a whole widget config."""
    nested = source.get("dataSource")
    device_id = source.get("deviceId") or (
        nested.get("deviceId") if isinstance(nested, Mapping) else None
    )
    return template.format(device_id=device_id) if device_id else None


# ── Live data ──────────────────────────────────────────────


@dataclass
class _Subscription:
    """One widget's subscription and its current sample view."""

    widget_id: Any
    widget_type: str
    topic: str
    telemetry_keys: tuple[str, ...]
    buffer_size: int
    json_object: bool
    json_object_path: Optional[str]
    buffer: deque = field(default_factory=deque)
    view: Any = field(default_factory=list)

    @property
    def key(self) -> tuple:
        return (
            self.topic,
            self.telemetry_keys,
            self.buffer_size,
            self.json_object,
            self.json_object_path,
        )


class InMemoryLiveDataAdapter:
    """Live data adapter fed by pushed payloads.

    Telemetry-mode widgets get a list of samples bounded by their buffer
    size; JSON-object widgets get the latest payload (or the subtree at
    ``jsonObjectPath``). Each update replaces the view object, so
    unchanged views keep their identity between render passes.
    """

    def __init__(self, topic_template: str = LIVE_TOPIC_TEMPLATE):
        self.topic_template = topic_template
        self._subscriptions: dict[Any, _Subscription] = {}
        # Empty view handed to widgets without a live subscription
        self._idle_views: dict[Any, list] = {}
        self._lock = threading.Lock()

    def subscribe(self, widget: WidgetDescriptor, config: Mapping[str, Any]) -> Any:
        """Return the widget's current view, (re)subscribing if its key changed."""
        widget = as_widget_descriptor(widget)
        data_source = config.get("dataSource") or {}
        topic = resolve_live_topic(data_source, self.topic_template)
        telemetry_keys = tuple(extract_telemetry_keys(data_source))
        json_object = bool(data_source.get("isJsonObject"))

        if not topic or (not telemetry_keys and not json_object):
            with self._lock:
                self._subscriptions.pop(widget.id, None)
                idle = self._idle_views.get(widget.id)
                if idle is None:
                    idle = self._idle_views[widget.id] = []
                    logger.debug(
                        f"Live data disabled for widget {widget.id} ({widget.type}): "
                        f"topic={topic!r} keys={list(telemetry_keys)}"
                    )
            return idle

        buffer_size = int(config.get("bufferSize") or FALLBACK_BUFFER_SIZE)
        subscription = _Subscription(
            widget_id=widget.id,
            widget_type=widget.type,
            topic=topic,
            telemetry_keys=telemetry_keys,
            buffer_size=buffer_size,
            json_object=json_object,
            json_object_path=data_source.get("jsonObjectPath"),
            buffer=deque(maxlen=buffer_size),
        )

        with self._lock:
            existing = self._subscriptions.get(widget.id)
            if existing is not None and existing.key == subscription.key:
                return existing.view
            self._subscriptions[widget.id] = subscription
            self._idle_views.pop(widget.id, None)

        logger.info(
            f"Subscribed widget {widget.id} ({widget.type}) to '{topic}' "
            f"[buffer={buffer_size}, json_object={json_object}]"
        )
        return subscription.view

    def ingest(self, topic: str, payload: Any) -> int:
        """Push a payload published on ``topic``. Returns widgets updated."""
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except ValueError as e:
                logger.warning(f"Dropped unparseable payload on '{topic}': {e}")
                return 0

        updated = 0
        with self._lock:
            for subscription in self._subscriptions.values():
                if subscription.topic != topic:
                    continue
                if self._apply(subscription, payload):
                    updated += 1

        logger.debug(f"Ingested payload on '{topic}' for {updated} widget(s)")
        return updated

    def _apply(self, subscription: _Subscription, payload: Any) -> bool:
        if subscription.json_object:
            subtree = get_by_dot_path(payload, subscription.json_object_path, default=_MISSING)
            if subtree is _MISSING:
                logger.warning(
                    f"jsonObjectPath '{subscription.json_object_path}' not found "
                    f"for widget {subscription.widget_id}"
                )
                return False
            subscription.view = subtree
            return True

        if not isinstance(payload, Mapping):
            logger.warning(
                f"Ignored non-object payload for widget {subscription.widget_id}"
            )
            return False

        sample: dict[str, Any] = {"time": datetime.now(timezone.utc).isoformat()}
        for key in subscription.telemetry_keys:
            set_by_dot_path(sample, key, get_by_dot_path(payload, key))
        subscription.buffer.append(sample)
        subscription.view = list(subscription.buffer)
        return True

    def current(self, widget_id: Any) -> Any:
        """Current view of a widget, or None when it has no subscription."""
        with self._lock:
            subscription = self._subscriptions.get(widget_id)
            return subscription.view if subscription else None

    def unsubscribe(self, widget_id: Any) -> None:
        with self._lock:
            self._idle_views.pop(widget_id, None)
            if self._subscriptions.pop(widget_id, None) is not None:
                logger.info(f"Unsubscribed widget {widget_id}")

    def subscription_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)


# ── Commands ──────────────────────────────────────────────


class CommandChannelError(Exception):
    """Raised when a command cannot be sent."""

    def __init__(self, message: str, topic: Optional[str] = None):
        self.message = message
        self.topic = topic
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "topic": self.topic,
        }


@dataclass
class SentCommand:
    """Record of a command published by the channel."""

    topic: str
    payload: dict
    kind: str
    sent_at: str


Publisher = Callable[[str, dict], Awaitable[None]]


class InMemoryCommandChannel:
    """Command channel that records commands or hands them to a publisher.

    ``send(target_key, value)`` publishes ``{target_key: value}`` (dot-paths
    nest); a mapping passed as ``target_key`` is published as the payload.
    """

    def __init__(
        self,
        connected: bool = True,
        publisher: Optional[Publisher] = None,
        topic_template: str = COMMAND_TOPIC_TEMPLATE,
    ):
        self.connected = connected
        self.topic_template = topic_template
        self._publisher = publisher
        self._in_flight: dict[str, int] = {}
        self.sent: list[SentCommand] = []

    def bind(self, data_source: Mapping[str, Any]) -> CommandBinding:
        """Senders and state for the control topic of a data source."""
        topic = resolve_command_topic(data_source or {}, self.topic_template)
        return CommandBinding(
            send_command=self._sender(topic, "command"),
            fan_send_command=self._sender(topic, "fan"),
            command_control_send_command=self._sender(topic, "device_command"),
            is_sending=self.is_sending(topic),
            connected=self.connected,
        )

    def is_sending(self, topic: Optional[str]) -> bool:
        return bool(topic) and self._in_flight.get(topic, 0) > 0

    def _sender(self, topic: Optional[str], kind: str) -> CommandSender:
        async def send(target_key: Any, value: Any = None) -> None:
            await self.send(topic, target_key, value, kind=kind)
        return send

    async def send(
        self,
        topic: Optional[str],
        target_key: Any,
        value: Any = None,
        kind: str = "command",
    ) -> None:
        """Publish one command on ``topic``."""
        if not self.connected:
            logger.error("Command channel not connected")
            raise CommandChannelError("Command channel not connected", topic)
        if not topic:
            logger.error(f"No command topic resolved for {kind} '{target_key}'")
            raise CommandChannelError("Command topic missing")

        if isinstance(target_key, Mapping):
            payload = dict(target_key)
        else:
            payload = {}
            set_by_dot_path(payload, str(target_key), value)

        self._in_flight[topic] = self._in_flight.get(topic, 0) + 1
        try:
            if self._publisher is not None:
                await self._publisher(topic, payload)
            self.sent.append(SentCommand(
                topic=topic,
                payload=payload,
                kind=kind,
                sent_at=datetime.now(timezone.utc).isoformat(),
            ))
            logger.info(f"Sent {kind} to '{topic}': {json.dumps(payload, default=str)}")
        except Exception as e:
            logger.error(f"Command send failed on '{topic}': {e}")
            raise
        finally:
            self._in_flight[topic] -= 1
            if self._in_flight[topic] <= 0:
                del self._in_flight[topic]


# Global instances
_live_adapter: Optional[InMemoryLiveDataAdapter] = None
_command_channel: Optional[InMemoryCommandChannel] = None


def get_live_data_adapter() -> InMemoryLiveDataAdapter:
    """Get the global in-memory live data adapter."""
    global _live_adapter
    if _live_adapter is None:
        _live_adapter = InMemoryLiveDataAdapter()
    return _live_adapter


def get_command_channel() -> InMemoryCommandChannel:
    """Get the global in-memory command channel."""
    global _command_channel
    if _command_channel is None:
        _command_channel = InMemoryCommandChannel()
    return _command_channel
