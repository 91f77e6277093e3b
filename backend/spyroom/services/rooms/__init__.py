"""Room and round engine.

Pure in-memory game logic imported by the socket handlers and HTTP routes.
Nothing in this package knows about Flask, sockets or the database: each
mutation returns an Outcome describing what to publish, and a thin adapter
(spyroom.fanout) does the publishing.
"""
from .engine import AssignmentResult, Role
from .events import Outbound, Outcome
from .registry import RoomRegistry
from .room import Player, PlayerIdentity, Room, RoomSettings, RoomState
from .words import WordPair

__all__ = [
    'AssignmentResult',
    'Outbound',
    'Outcome',
    'Player',
    'PlayerIdentity',
    'Role',
    'Room',
    'RoomRegistry',
    'RoomSettings',
    'RoomState',
    'WordPair',
]
