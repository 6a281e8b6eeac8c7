import threading

from .config import KEYS, SCREEN_HEIGHT, SCREEN_WIDTH


# ******************** DISPLAY
class Display:
    """monochrome w*h bitmap, each pixel is either 0 or 1"""
    def __init__(self, w=SCREEN_WIDTH, h=SCREEN_HEIGHT):
        self.w, self.h = w, h
        self.buffer = [0] * h * w

    def read_pixel(self, x, y):
        """return 1 if pixel is ON, return 0 if pixel is OFF, coordinates wrap like in blit"""
        return self.buffer[(y % self.h) * self.w + x % self.w]

    def clear(self):
        self.buffer = [0] * self.h * self.w

    def blit(self, x, y, sprite_rows):
        """
        XOR an 8 pixel wide sprite onto the buffer with its top left corner at (x, y)
        pixels falling off an edge wrap around to the opposite one
        return True if any pixel was turned from ON to OFF
        """
        collision = False
        for row, sprite_byte in enumerate(sprite_rows):
            y_coordinate = (y + row) % self.h
            for col in range(8):
                bit = (sprite_byte >> (7 - col)) & 0x1
                if not bit:
                    continue
                index = y_coordinate * self.w + (x + col) % self.w
                if self.buffer[index]:
                    collision = True
                self.buffer[index] ^= bit
        return collision

    def rows(self):
        """the buffer as a list of h rows of w values, what a frame sink consumes"""
        return [[self.read_pixel(x, y) for x in range(self.w)] for y in range(self.h)]


# ******************** KEYPAD
class Keypad:
    def __init__(self):
        self.keys = [False] * KEYS

    def __getitem__(self, key):
        """True while key is held down, unknown keys are never down"""
        return 0 <= key < KEYS and self.keys[key]

    def __setitem__(self, key, value):
        if 0 <= key < KEYS:
            self.keys[key] = bool(value)

    def __str__(self):
        if self.untouched():
            return "-"
        return "".join(f"{k:X}" for k in range(KEYS) if self.keys[k])

    def untouched(self):
        return not any(self.keys)


# ******************** TIMERS
class Timers:
    """
    delay and sound timers, both count down by one on every tick until they reach 0
    ticks come from the host at TIMER_FREQUENCY, unrelated to the instruction rate,
    so every access goes through the same lock
    """
    def __init__(self):
        self._lock = threading.Lock()
        self._dt = 0
        self._st = 0

    @property
    def dt(self):
        with self._lock:
            return self._dt

    @dt.setter
    def dt(self, value):
        with self._lock:
            self._dt = value & 0xFF

    @property
    def st(self):
        with self._lock:
            return self._st

    @st.setter
    def st(self, value):
        with self._lock:
            self._st = value & 0xFF

    def tick(self):
        with self._lock:
            if self._dt > 0:
                self._dt -= 1
            if self._st > 0:
                self._st -= 1
