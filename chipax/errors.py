"""Step statuses and the exceptions they map to at the host boundary.

Jitted code cannot raise, so every instruction records its outcome as a
``StepStatus`` on the emulator state. ``raise_for_status`` turns an error
status back into a Python exception once the state is on the host.
"""

from enum import IntEnum


class StepStatus(IntEnum):
    """Outcome of the last executed step."""
    OK = 0
    DRAW = 1
    WAIT_FOR_KEY = 2
    EXIT = 3
    UNKNOWN_OPCODE = 4
    STACK_OVERFLOW = 5
    STACK_UNDERFLOW = 6
    OUT_OF_BOUNDS = 7

    @property
    def is_error(self) -> bool:
        return self >= StepStatus.UNKNOWN_OPCODE


class Chip8Error(Exception):
    """Base class for fatal interpreter errors."""


class CapacityError(Chip8Error):
    """Program does not fit in memory."""

    def __init__(self, size: int, capacity: int):
        super().__init__(f"Program of {size} bytes exceeds the {capacity} bytes available")
        self.size = size
        self.capacity = capacity


class UnknownOpcode(Chip8Error):
    """No decode rule matched the fetched instruction."""

    def __init__(self, opcode: int, address: int):
        super().__init__(f"Unknown instruction 0x{opcode:04X} at 0x{address:03X}")
        self.opcode = opcode
        self.address = address


class StackOverflow(Chip8Error):
    """Subroutine call with a full stack."""

    def __init__(self, address: int):
        super().__init__(f"Stack overflow at 0x{address:03X}")
        self.address = address


class StackUnderflow(Chip8Error):
    """Return with an empty stack."""

    def __init__(self, address: int):
        super().__init__(f"Stack underflow at 0x{address:03X}")
        self.address = address


class OutOfBounds(Chip8Error):
    """Memory access, font lookup or key index outside its range."""

    def __init__(self, address: int, index: int):
        super().__init__(f"Out of bounds memory access at 0x{address:03X} (I=0x{index:04X})")
        self.address = address
        self.index = index


def raise_for_status(state) -> StepStatus:
    """Raise the exception matching ``state.status``, or return the status.

    A failed step leaves the state untouched, so ``state.pc`` still points at
    the offending instruction.
    """
    status = StepStatus(int(state.status))
    if not status.is_error:
        return status

    address = int(state.pc)
    if status == StepStatus.UNKNOWN_OPCODE:
        opcode = (int(state.memory[address]) << 8) | int(state.memory[address + 1])
        raise UnknownOpcode(opcode, address)
    if status == StepStatus.STACK_OVERFLOW:
        raise StackOverflow(address)
    if status == StepStatus.STACK_UNDERFLOW:
        raise StackUnderflow(address)
    raise OutOfBounds(address, int(state.I))
