import unittest

from chip8vm.scheduler import Scheduler


class TestScheduler(unittest.TestCase):
    def test_cycles_follow_ips(self):
        s = Scheduler(ips=1000)
        self.assertEqual(s.advance(16)[0], 16)

    def test_fractions_carry_over(self):
        s = Scheduler(ips=500)
        self.assertEqual(s.advance(3)[0], 1)
        self.assertEqual(s.advance(1)[0], 1)

    def test_ticks_at_sixty_hz_whatever_the_ips(self):
        for ips in (1, 700, 2500):
            s = Scheduler(ips=ips)
            ticks = sum(s.advance(10)[1] for _ in range(101))
            self.assertEqual(ticks, 60)

    def test_ips_must_be_positive(self):
        with self.assertRaises(ValueError):
            Scheduler(ips=0)
        s = Scheduler()
        with self.assertRaises(ValueError):
            s.ips = -5
        s.ips = 1200
        self.assertEqual(s.ips, 1200)


if __name__ == "__main__":
    unittest.main()
