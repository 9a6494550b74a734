"""Stateful host-side CHIP-8 machine.

This module wraps the functional JAX core in an object that owns one
``EmulatorState`` and mutates it in place, which is the interface expected
by renderers, audio and input collaborators.

Example:
    ```python
    from chipax import Chip8

    machine = Chip8()
    machine.load_program(rom_bytes)

    while running:
        machine.key_press(0x5)
        status = machine.run_frame()
        draw(machine.display)
    ```
"""

from typing import Optional

import jax
import numpy as np

from chipax import state as state_lib
from chipax.constants import INSTRUCTION_FREQUENCY, NUM_KEYS, TIMER_FREQUENCY
from chipax.decode import mnemonic
from chipax.emulator import run_instructions, step, tick_timers
from chipax.errors import Chip8Error, StepStatus, raise_for_status
from chipax.logging import ConsoleLogger
from chipax.state import EmulatorState, Quirks


class Chip8:
    """CHIP-8 machine driven by an external clock.

    The caller decides the instruction rate by calling ``step()`` (or
    ``run_frame()``) and must call ``tick_timers()`` at 60 Hz. Not thread
    safe: hosts reading ``display`` from another thread must synchronise
    with the thread that executes instructions.
    """

    def __init__(
        self,
        rng: Optional[jax.random.PRNGKey] = None,
        seed: int = 0,
        quirks: Quirks = Quirks(),
        instruction_frequency: int = INSTRUCTION_FREQUENCY,
        timer_frequency: int = TIMER_FREQUENCY,
        logger: Optional[ConsoleLogger] = None,
    ):
        """Initialize the machine.

        Args:
            rng: JAX random key used by CXNN. Derived from ``seed`` if None
            seed: Seed for the random key when ``rng`` is not given
            quirks: Compatibility switches for divergent instructions
            instruction_frequency: Instructions per second used by ``run_frame``
            timer_frequency: Timer ticks per second (60 on real hardware)
            logger: Console logger, a default INFO logger if None
        """
        if instruction_frequency < timer_frequency:
            raise ValueError(
                f"instruction_frequency ({instruction_frequency}) must be at least "
                f"timer_frequency ({timer_frequency})"
            )
        if rng is None:
            rng = jax.random.PRNGKey(seed)

        self.instruction_frequency = instruction_frequency
        self.timer_frequency = timer_frequency
        self.logger = logger if logger is not None else ConsoleLogger()

        self._state = state_lib.create_state(rng, quirks)
        self._step = jax.jit(step)
        self._tick_timers = jax.jit(tick_timers)

    @property
    def state(self) -> EmulatorState:
        """Current immutable emulator state."""
        return self._state

    @property
    def instructions_per_frame(self) -> int:
        """Number of instructions executed between two timer ticks."""
        return self.instruction_frequency // self.timer_frequency

    def reset(self):
        """Zero memory, registers, stack, timers and display; reload the font; PC = 0x200."""
        self._state = state_lib.reset(self._state)
        self.logger.info("Machine reset")

    def load_program(self, program: bytes):
        """Copy a program into memory at 0x200.

        Raises:
            CapacityError: if the program does not fit in memory
        """
        try:
            self._state = state_lib.load_program(self._state, program)
        except Chip8Error as err:
            self.logger.error(str(err))
            raise
        self.logger.info(f"Loaded program of {len(program)} bytes")

    def step(self) -> StepStatus:
        """Execute one instruction.

        Returns:
            OK, DRAW when the display changed, WAIT_FOR_KEY while FX0A has no
            key to read (call again after updating the keypad), or EXIT when
            the PC is below 0x200 or past the loaded bytes. Such addresses
            are never fetched, so a jump into the font area (`1050`) ends
            the program instead of running it

        Raises:
            Chip8Error: the matching subclass on a fatal error; the state is
                left as it was before the failing instruction
        """
        if self.logger.is_enabled_for("DEBUG"):
            self._log_instruction()
        self._state = self._step(self._state)
        return self._raise_for_status()

    def tick_timers(self):
        """Decrement delay and sound timers; call at ``timer_frequency``."""
        self._state = self._tick_timers(self._state)

    def run_frame(self) -> StepStatus:
        """Run one timer period worth of instructions, then tick the timers once.

        Execution stops early when the program waits for a key, exits or
        fails. Timers still tick unless an error is raised.
        """
        self._state, executed = run_instructions(self._state, self.instructions_per_frame)
        self.logger.debug(f"Frame executed {int(executed)} instructions")
        status = self._raise_for_status()
        self.tick_timers()
        return status

    def key_press(self, key: int):
        """Mark hex key ``key`` (0x0-0xF) as held down."""
        self._set_key(key, True)

    def key_release(self, key: int):
        """Mark hex key ``key`` (0x0-0xF) as released."""
        self._set_key(key, False)

    @property
    def display(self) -> np.ndarray:
        """Snapshot of the (64, 32) boolean display buffer."""
        return np.array(self._state.display, dtype=np.bool_)

    @property
    def sound_active(self) -> bool:
        """True while the sound timer is non-zero and a tone should play."""
        return bool(self._state.sound_timer > 0)

    @property
    def status(self) -> StepStatus:
        """Status recorded by the last step."""
        return StepStatus(int(self._state.status))

    def _set_key(self, key: int, pressed: bool):
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key must be in range 0x0-0xF, got {key}")
        self.logger.debug(f"KEY {'PRESS' if pressed else 'RELEASE'}: {key:X}")
        self._state = self._state.replace(keypad=self._state.keypad.at[key].set(pressed))

    def _log_instruction(self):
        pc = int(self._state.pc)
        memory = self._state.memory
        if pc + 1 < memory.shape[0]:
            instruction = (int(memory[pc]) << 8) | int(memory[pc + 1])
            self.logger.debug(f"EXEC 0x{pc:03X} {instruction:04X} {mnemonic(instruction)}")

    def _raise_for_status(self) -> StepStatus:
        try:
            return raise_for_status(self._state)
        except Chip8Error as err:
            self.logger.error(str(err))
            raise
