"""生成控制器与合并信号。"""

from chat_core.controller.generation import (
    ASSISTANT_HEADER,
    STOP_SENTINEL,
    USER_HEADER,
    ControllerState,
    GenerationController,
    GenerationOutcome,
)
from chat_core.controller.signals import CoalescingSignal

__all__ = [
    "ASSISTANT_HEADER",
    "STOP_SENTINEL",
    "USER_HEADER",
    "CoalescingSignal",
    "ControllerState",
    "GenerationController",
    "GenerationOutcome",
]
