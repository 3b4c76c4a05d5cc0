"""Session history — ordered conversational turns, one history per session."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Literal

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

logger = logging.getLogger(__name__)

Role = Literal["system", "human", "assistant"]

_MESSAGE_TYPES: dict[str, type[BaseMessage]] = {
    "system": SystemMessage,
    "human": HumanMessage,
    "assistant": AIMessage,
}


@dataclass(frozen=True)
class Turn:
    """One entry of a conversation.

    Attributes
    ----------
    role:
        ``"system"``, ``"human"`` or ``"assistant"``.
    text:
        The verbatim message text.
    """

    role: Role
    text: str

    def to_message(self) -> BaseMessage:
        return _MESSAGE_TYPES[self.role](content=self.text)


def _check_max_turns(max_turns: int | None) -> None:
    if max_turns is not None and (max_turns <= 0 or max_turns % 2):
        raise ValueError(f"max_turns must be None or a positive even number, got {max_turns}")


@dataclass
class SessionHistory:
    """Turns of a single session, starting with one system turn.

    ``max_turns`` bounds the number of non-system turns kept; the oldest
    human/assistant pair is dropped first. ``None`` keeps everything;
    otherwise it must be a positive even number so the latest exchange
    always survives.
    """

    system_prompt: str
    max_turns: int | None = None
    turns: list[Turn] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def __post_init__(self) -> None:
        _check_max_turns(self.max_turns)
        if not self.turns:
            self.turns.append(Turn("system", self.system_prompt))

    def __len__(self) -> int:
        return len(self.turns)

    def to_messages(self) -> list[BaseMessage]:
        return [t.to_message() for t in self.turns]

    def append_exchange(self, human_text: str, assistant_text: str) -> None:
        """Record one completed exchange as exactly two turns."""
        self.turns.append(Turn("human", human_text))
        self.turns.append(Turn("assistant", assistant_text))
        if self.max_turns is not None:
            head, rest = self.turns[:1], self.turns[1:]
            while len(rest) > self.max_turns:
                rest = rest[2:]
            self.turns = head + rest


class SessionStore:
    """Session histories keyed by session id, evicted least-recently-used.

    Parameters
    ----------
    system_prompt:
        First turn of every new session.
    max_sessions:
        Sessions kept before the least recently used one is dropped.
    max_turns:
        Forwarded to every :class:`SessionHistory`.
    """

    def __init__(self, system_prompt: str, *, max_sessions: int = 1000, max_turns: int | None = None) -> None:
        if max_sessions <= 0:
            raise ValueError(f"max_sessions must be positive, got {max_sessions}")
        _check_max_turns(max_turns)
        self.system_prompt = system_prompt
        self.max_sessions = max_sessions
        self.max_turns = max_turns
        self._sessions: OrderedDict[str, SessionHistory] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> SessionHistory:
        """Return the history for *session_id*, creating it when missing."""
        history = self._sessions.get(session_id)
        if history is None:
            history = SessionHistory(self.system_prompt, max_turns=self.max_turns)
            self._sessions[session_id] = history
            while len(self._sessions) > self.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("Evicted session %s", evicted)
        else:
            self._sessions.move_to_end(session_id)
        return history

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def clear(self) -> None:
        self._sessions.clear()
