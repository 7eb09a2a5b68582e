from __future__ import annotations

"""
Conversation state storage for the Telegram router.

In-memory dict keyed by chat id: one pending prompt per chat at most.
Lost on restart; entries never expire on their own.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class FlowState(str, Enum):
    WAITING_FOR_AMOUNT = "WAITING_FOR_AMOUNT"
    WAITING_FOR_REPORT_OPTION = "WAITING_FOR_REPORT_OPTION"
    WAITING_FOR_PRODUCT_CODE = "WAITING_FOR_PRODUCT_CODE"


@dataclass(frozen=True)
class ConversationState:
    state: FlowState
    bot_name: Optional[str] = None
    bot_token: Optional[str] = None


class ConversationStore:
    """Chat id -> pending conversation state."""

    def __init__(self):
        self._states: Dict[int, ConversationState] = {}

    def get(self, chat_id: int) -> ConversationState | None:
        return self._states.get(chat_id)

    def set(self, chat_id: int, state: ConversationState) -> None:
        self._states[chat_id] = state

    def clear(self, chat_id: int) -> None:
        self._states.pop(chat_id, None)

    def __len__(self) -> int:
        return len(self._states)
