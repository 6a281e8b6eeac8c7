from .cpu import Chip8, RunState
from .errors import (
    Chip8Error,
    RomTooLargeError,
    StackError,
    StackOverflowError,
    StackUnderflowError,
    UnknownInstructionError,
)
