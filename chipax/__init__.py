"""CHIP-8 interpreter package."""

from chipax.state import EmulatorState, Quirks, create_state, reset, load_program
from chipax.emulator import execute, fetch, step, tick_timers, run_instructions
from chipax.decode import DecodedInstruction, decode, mnemonic
from chipax.errors import (
    StepStatus, Chip8Error, CapacityError, UnknownOpcode,
    StackOverflow, StackUnderflow, OutOfBounds, raise_for_status,
)
from chipax.machine import Chip8
from chipax.constants import *
from chipax.rendering import display_pixels, display_to_text

__all__ = [
    "EmulatorState",
    "Quirks",
    "create_state",
    "reset",
    "load_program",
    "fetch",
    "execute",
    "step",
    "tick_timers",
    "run_instructions",
    "DecodedInstruction",
    "decode",
    "mnemonic",
    "StepStatus",
    "Chip8Error",
    "CapacityError",
    "UnknownOpcode",
    "StackOverflow",
    "StackUnderflow",
    "OutOfBounds",
    "raise_for_status",
    "Chip8",
    "MEMORY_SIZE",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "STACK_SIZE",
    "KEYPAD_LAYOUT",
    "display_to_text",
    "display_pixels",
]
