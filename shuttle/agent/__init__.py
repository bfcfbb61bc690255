"""Agent orchestration: the step loop and the Agent facade."""

from .assembler import MessageAssembler
from .core import Agent, create_agent
from .step import StepResult, TurnContext, batch_transport, run_step, run_turn, stream_transport

__all__ = [
    "Agent", "create_agent",
    "MessageAssembler",
    "StepResult", "TurnContext", "batch_transport", "run_step", "run_turn", "stream_transport",
]
