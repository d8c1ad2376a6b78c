"""Conversation history shared by prompt submission and generation."""

import threading
from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    text: str


class ConversationHistory:
    """Ordered list of turns guarded by a mutex.

    Readers get an immutable snapshot, so a request built from ``turns()`` is
    unaffected by later appends or ``clear()``.
    """

    def __init__(self):
        self._turns: list[ConversationTurn] = []
        self._lock = threading.Lock()

    def append(self, role: Role, text: str) -> ConversationTurn:
        turn = ConversationTurn(Role(role), text)
        with self._lock:
            self._turns.append(turn)
        return turn

    def add_user(self, text: str) -> ConversationTurn:
        return self.append(Role.USER, text)

    def add_model(self, text: str) -> ConversationTurn:
        return self.append(Role.MODEL, text)

    def turns(self) -> tuple[ConversationTurn, ...]:
        with self._lock:
            return tuple(self._turns)

    def clear(self):
        with self._lock:
            self._turns.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._turns)
