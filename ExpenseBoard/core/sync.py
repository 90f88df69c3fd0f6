"""Broadcast sync bus keeping tracker windows consistent with each other.

Every tracker window owns one :class:`SyncBus`. Buses opened with the same channel name form
a fan-out group: a published event is queued for every *other* open bus in the group and
delivered through a queued Qt connection, so:

- delivery is asynchronous; the publisher never re-enters its own handler,
- events from one publisher arrive at each receiver in publication order,
- there is no total order across publishers and no acknowledgment,
- events published while a window is closed are lost; that window catches up by reading the
  store on its next load.

Events travel as JSON documents::

    {"type": "add", "expense": {...}}
    {"type": "delete", "id": "..."}
    {"type": "updateUserInfo", "userInfo": {"name": "...", "salary": 0}}
"""
import dataclasses
import enum
import logging
import weakref
from typing import Any, Callable, ClassVar, Dict, Optional, Union

from PySide6 import QtCore

from . import model
from ..settings import lib
from ..status import status


class EventKind(enum.StrEnum):
    """Wire names of the mutation events."""
    Add = 'add'
    Delete = 'delete'
    ProfileUpdate = 'updateUserInfo'


@dataclasses.dataclass(frozen=True)
class AddEvent:
    """An expense was added."""
    expense: model.Expense
    kind: ClassVar[EventKind] = EventKind.Add

    def to_message(self) -> Dict[str, Any]:
        return {'type': self.kind.value, 'expense': self.expense.to_dict()}


@dataclasses.dataclass(frozen=True)
class DeleteEvent:
    """An expense was deleted by id."""
    id: str
    kind: ClassVar[EventKind] = EventKind.Delete

    def to_message(self) -> Dict[str, Any]:
        return {'type': self.kind.value, 'id': self.id}


@dataclasses.dataclass(frozen=True)
class ProfileUpdateEvent:
    """The user profile was replaced."""
    profile: model.UserProfile
    kind: ClassVar[EventKind] = EventKind.ProfileUpdate

    def to_message(self) -> Dict[str, Any]:
        return {'type': self.kind.value, 'userInfo': self.profile.to_dict()}


SyncEvent = Union[AddEvent, DeleteEvent, ProfileUpdateEvent]


def parse_message(message: Dict[str, Any]) -> SyncEvent:
    """Decode a received message into its event.

    Args:
        message: The decoded JSON document.

    Returns:
        SyncEvent: The matching event.

    Raises:
        ValueError: If the message type is unknown or its payload is invalid.
    """
    if not isinstance(message, dict):
        raise ValueError(f'Message must be a dict, got {type(message)}')

    try:
        kind = EventKind(message.get('type'))
    except ValueError as ex:
        raise ValueError(f'Unknown message type: {message.get("type")!r}') from ex

    if kind == EventKind.Add:
        return AddEvent(model.Expense.from_dict(message.get('expense')))
    if kind == EventKind.Delete:
        if 'id' not in message:
            raise ValueError('Delete message is missing "id".')
        return DeleteEvent(str(message['id']))
    return ProfileUpdateEvent(model.UserProfile.from_dict(message.get('userInfo')))


# Open channels per channel name
_channels: Dict[str, 'weakref.WeakSet[BroadcastChannel]'] = {}


class BroadcastChannel(QtCore.QObject):
    """Named fan-out channel between QObjects living on the application thread.

    Emits :attr:`messageReceived` with the decoded document for every message posted by
    another open channel of the same name.
    """
    messageReceived = QtCore.Signal(object)

    _delivered = QtCore.Signal(str)

    def __init__(self, name: str, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self._name = name
        self._closed = False

        self._delivered.connect(self._on_delivered, QtCore.Qt.QueuedConnection)
        _channels.setdefault(name, weakref.WeakSet()).add(self)

    @property
    def name(self) -> str:
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed

    def post_message(self, message: Dict[str, Any]) -> int:
        """Queue ``message`` for every other open channel with the same name.

        Args:
            message: A JSON-serializable document.

        Returns:
            int: The number of channels the message was queued for.

        Raises:
            status.SyncUnavailableException: If this channel is closed or there is no Qt
                application to deliver queued messages.
        """
        if self._closed:
            raise status.SyncUnavailableException(f'Channel "{self._name}" is closed.')
        if not QtCore.QCoreApplication.instance():
            raise status.SyncUnavailableException('No application event loop to deliver messages.')

        payload = model.dumps(message)

        group = _channels.get(self._name, weakref.WeakSet())
        count = 0
        for peer in list(group):
            if peer is self or peer.closed:
                continue
            try:
                peer._delivered.emit(payload)
            except RuntimeError as ex:
                logging.debug(f'Dropping deleted channel from "{self._name}": {ex}')
                group.discard(peer)
                continue
            count += 1

        logging.debug(f'Posted "{message.get("type")}" on "{self._name}" to {count} channel(s)')
        return count

    @QtCore.Slot(str)
    def _on_delivered(self, payload: str) -> None:
        if self._closed:
            return
        try:
            message = model.loads(payload)
        except ValueError as ex:
            logging.warning(f'Discarding undecodable message on "{self._name}": {ex}')
            return
        self.messageReceived.emit(message)

    def close(self) -> None:
        """Leave the channel group. Pending deliveries to this channel are discarded."""
        if self._closed:
            return
        self._closed = True
        group = _channels.get(self._name)
        if group is not None:
            group.discard(self)
        logging.debug(f'Closed channel "{self._name}"')


class SyncBus(QtCore.QObject):
    """Publish and receive tracker mutation events.

    Publishing never raises: when the channel cannot deliver, the bus logs the failure and
    the caller carries on in single-window mode.
    """

    def __init__(self, name: str = lib.CHANNEL_NAME, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self._handler: Optional[Callable[[SyncEvent], None]] = None
        self._channel = BroadcastChannel(name, parent=self)
        self._channel.messageReceived.connect(self._on_message)

    @property
    def channel(self) -> BroadcastChannel:
        return self._channel

    def publish(self, event: SyncEvent) -> bool:
        """Broadcast ``event`` to the other open buses.

        Returns:
            bool: False if the transport was unavailable.
        """
        try:
            self._channel.post_message(event.to_message())
        except status.SyncUnavailableException:
            return False
        except RuntimeError as ex:
            logging.debug(f'Sync channel unavailable: {ex}')
            return False
        return True

    def subscribe(self, handler: Callable[[SyncEvent], None]) -> None:
        """Register the handler receiving remote events. Replaces any previous handler."""
        if self._handler is not None:
            logging.debug('Replacing existing sync handler.')
        self._handler = handler

    @QtCore.Slot(object)
    def _on_message(self, message: Dict[str, Any]) -> None:
        try:
            event = parse_message(message)
        except ValueError as ex:
            logging.warning(f'Ignoring malformed sync message: {ex}')
            return

        if self._handler is None:
            logging.debug(f'No handler for "{event.kind}" event.')
            return
        self._handler(event)

    def close(self) -> None:
        self._handler = None
        self._channel.close()
