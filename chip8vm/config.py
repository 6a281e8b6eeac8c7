# CHIP-8 INFO
# https://chip-8.github.io/extensions/#chip-8
# https://github.com/mattmikolay/chip-8/wiki/Mastering-CHIP%E2%80%908
import os


# ******************** MACHINE
MEMORY_SIZE = 4096
ROM_START_ADDRESS = 0x200
ROM_CAPACITY = MEMORY_SIZE - ROM_START_ADDRESS
REGISTERS = 16
STACK_LIMIT = 16            # calls
KEYS = 16
TIMER_FREQUENCY = 60        # hz

C8_FONTS = [0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
            0x20, 0x60, 0x20, 0x20, 0x70,  # 1
            0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
            0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
            0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
            0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
            0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
            0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
            0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
            0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
            0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
            0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
            0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
            0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
            0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
            0xF0, 0x80, 0xF0, 0x80, 0x80]  # F
FONT_GLYPH_SIZE = 5


# ******************** HOST
DEBUG = True if int(os.getenv('DEBUG', 0)) >= 1 else False
SCREEN_HEIGHT = 32
SCREEN_WIDTH = 64
SCALE = 15
DEFAULT_IPS = 700           # instructions per second
FPS = 60
IPS_STEP = 100             # ips change per arrow key press
BLUE = (80, 69, 155, 255)
LIGHT_BLUE = (136, 126, 203, 255)
