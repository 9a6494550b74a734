"""CHIP-8 stack operations."""

import jax.numpy as jnp
from chipax.constants import STACK_SIZE
from chipax.state import StackState


def push(stack: StackState, address: jnp.ndarray) -> tuple[StackState, jnp.ndarray]:
    """Push address onto stack.

    Returns the new stack and an overflow flag. A full stack is returned as is.
    """
    overflow = stack.pointer >= STACK_SIZE
    slot = jnp.minimum(stack.pointer, STACK_SIZE - 1)
    new_data = jnp.where(overflow, stack.data, stack.data.at[slot].set(jnp.astype(address, jnp.uint16)))
    new_pointer = jnp.where(overflow, stack.pointer, stack.pointer + 1)
    return stack.replace(data=new_data, pointer=new_pointer), overflow


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray, jnp.ndarray]:
    """Pop address from stack.

    Returns the new stack, the popped address and an underflow flag.
    """
    underflow = stack.pointer == 0
    new_pointer = jnp.where(underflow, stack.pointer, stack.pointer - 1)
    popped_address = stack.data[new_pointer]
    new_data = stack.data.at[new_pointer].set(jnp.where(underflow, popped_address, 0))
    return stack.replace(data=new_data, pointer=new_pointer), popped_address, underflow
