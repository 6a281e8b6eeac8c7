from .config import C8_FONTS, DEBUG, MEMORY_SIZE, ROM_CAPACITY, ROM_START_ADDRESS, STACK_LIMIT
from .errors import RomTooLargeError, StackOverflowError, StackUnderflowError


# ********** WRAPS A BYTEARRAY TO REPRESENT THE MAIN MEMORY WITH A LIMITED SIZE OF 4KB
class Memory:
    """
    0x000-0x1FF is internal memory, used here only for the font glyphs
    0x200 and up is the program's memory
    addresses wrap around the 4KB boundary
    """
    def __init__(self):
        self.inner = bytearray(MEMORY_SIZE)
        self.load_font()

    def __setitem__(self, address, value):
        self.inner[address % MEMORY_SIZE] = value & 0xFF

    def __getitem__(self, address):
        return self.inner[address % MEMORY_SIZE]

    def read_word(self, address):
        """big-endian 16 bit value stored at address, address+1"""
        return self[address] << 8 | self[address + 1]

    def load_font(self):
        self.inner[0x00:0x00+len(C8_FONTS)] = bytes(C8_FONTS)

    def load(self, data):
        """copy a program image verbatim at ROM_START_ADDRESS, refusing images that don't fit"""
        if len(data) > ROM_CAPACITY:
            raise RomTooLargeError(len(data), ROM_CAPACITY)
        self.inner[ROM_START_ADDRESS:ROM_START_ADDRESS+len(data)] = bytes(data)

    def load_rom(self, path):
        with open(path, mode='rb') as f:
            rom = f.read()
        self.load(rom)
        if DEBUG: print(f"The ROM at path {path} has been loaded successfully ({len(rom)} bytes)")


# ********** A STACK OF RETURN ADDRESSES WITH A LIMITED SIZE OF 16
class Stack:
    def __init__(self, limit=STACK_LIMIT):
        self.addr_list = [0] * limit
        self.sp = -1

    def __len__(self):
        return self.sp + 1

    def __str__(self):
        return str([f"0x{addr:03x}" for addr in self.addr_list[:self.sp+1]])

    def push(self, address):
        if len(self) >= len(self.addr_list):
            raise StackOverflowError(f"The CHIP-8 stack can contain at most {len(self.addr_list)} addresses. Limit exceeded")
        self.sp += 1
        self.addr_list[self.sp] = address

    def pop(self):
        if self.sp < 0:
            raise StackUnderflowError("Return with an empty CHIP-8 stack")
        address = self.addr_list[self.sp]
        self.sp -= 1
        return address
