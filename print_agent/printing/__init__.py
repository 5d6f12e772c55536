"""
Printing subsystem for the print agent.

This package groups printing-related functionality:

- directives: immutable printer instructions
- render: invoice payload -> directive sequence (pure)
- device: DeviceSink interface and python-escpos transports
- worker: per-job retry state machine

For convenience, common names are re-exported for easy import.
"""

from .directives import Close, Cut, Directive, Feed, SetAlign, SetEmphasis, SetSize, Text
from .render import format_money, pad, render_receipt, to_plain_text
from .device import DeviceSink, create_device
from .worker import AttemptResult, JobOutcome, JobProcessor, ProcessorState

__all__ = [
    "AttemptResult",
    "Close",
    "Cut",
    "DeviceSink",
    "Directive",
    "Feed",
    "JobOutcome",
    "JobProcessor",
    "ProcessorState",
    "SetAlign",
    "SetEmphasis",
    "SetSize",
    "Text",
    "create_device",
    "format_money",
    "pad",
    "render_receipt",
    "to_plain_text",
]
