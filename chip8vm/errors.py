class Chip8Error(Exception):
    """base class of every fault raised by the interpreter"""


class UnknownInstructionError(Chip8Error):
    def __init__(self, opcode):
        self.opcode = opcode
        super().__init__(f"Unknown instruction: 0x{opcode:04x}")


class StackError(Chip8Error):
    pass


class StackOverflowError(StackError):
    pass


class StackUnderflowError(StackError):
    pass


class RomTooLargeError(Chip8Error):
    def __init__(self, size, capacity):
        self.size, self.capacity = size, capacity
        super().__init__(f"ROM is {size} bytes long but only {capacity} bytes of program memory are available")
