from flask import current_app

from spyroom.services.rooms.events import Outcome


def room_channel(room_id: str) -> str:
    return f"room:{room_id}"


def user_channel(identity_id: str) -> str:
    return f"user:{identity_id}"


class Fanout:
    """Publishes engine outcomes over Socket.IO.

    Every socket of a player sits in its ``user:<id>`` channel, and in the
    ``room:<code>`` channel while bound to a room.
    """

    def __init__(self, socketio, namespace='/'):
        self.socketio = socketio
        self.namespace = namespace

    def publish(self, room_id, event, payload=None):
        self.socketio.emit(event, payload, to=room_channel(room_id), namespace=self.namespace)

    def publish_to_one(self, identity_id, event, payload=None):
        self.socketio.emit(event, payload, to=user_channel(identity_id), namespace=self.namespace)

    def deliver(self, outcome: Outcome) -> None:
        for out in outcome.events:
            if out.is_private:
                self.publish_to_one(out.recipient, out.event, out.payload)
            else:
                self.publish(outcome.room_id, out.event, out.payload)
        if outcome.events:
            current_app.logger.debug(f"[fanout] room={outcome.room_id} events={outcome.names()}")
