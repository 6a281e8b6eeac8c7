from .config import DEFAULT_IPS, TIMER_FREQUENCY


class Scheduler:
    """
    turns elapsed wall time into work for the host loop: how many instruction cycles
    to run at the chosen ips, and how many timer ticks are due at the fixed timer rate
    fractions left over are carried into the next call
    """
    def __init__(self, ips=DEFAULT_IPS, timer_hz=TIMER_FREQUENCY):
        if ips <= 0:
            raise ValueError("instructions per second must be positive")
        self.ms_per_cycle = 1000 / ips
        self.ms_per_tick = 1000 / timer_hz
        self._cycle_ms = 0.0
        self._tick_ms = 0.0

    @property
    def ips(self):
        return round(1000 / self.ms_per_cycle)

    @ips.setter
    def ips(self, value):
        if value <= 0:
            raise ValueError("instructions per second must be positive")
        self.ms_per_cycle = 1000 / value

    def advance(self, elapsed_ms):
        """return (cycles, ticks) due after elapsed_ms more milliseconds"""
        self._cycle_ms += elapsed_ms
        self._tick_ms += elapsed_ms
        cycles, self._cycle_ms = divmod(self._cycle_ms, self.ms_per_cycle)
        ticks, self._tick_ms = divmod(self._tick_ms, self.ms_per_tick)
        return int(cycles), int(ticks)
