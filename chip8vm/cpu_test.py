import contextlib
import io
import unittest
from unittest import mock

from chip8vm import cpu
from chip8vm.config import ROM_START_ADDRESS
from chip8vm.cpu import Chip8, RunState
from chip8vm.errors import StackOverflowError, StackUnderflowError, UnknownInstructionError
from chip8vm.instructions import OPCODES


def program(*opcodes):
    return b"".join(op.to_bytes(2, "big") for op in opcodes)


def poke(chip, address, *opcodes):
    for i, byte in enumerate(program(*opcodes)):
        chip.mem[address + i] = byte


def run(chip, cycles):
    for _ in range(cycles):
        chip.cycle()


class FixedRandom:
    def __init__(self, value):
        self.value = value

    def randint(self, a, b):
        return self.value


class TestArithmetic(unittest.TestCase):
    def setUp(self):
        self.chip = Chip8()

    def execute(self, opcode, vx, vy, x=0x1, y=0x2):
        self.chip.pc = ROM_START_ADDRESS
        self.chip.v_regs[x], self.chip.v_regs[y] = vx, vy
        poke(self.chip, ROM_START_ADDRESS, opcode)
        self.chip.cycle()
        return self.chip.v_regs[x], self.chip.v_regs[0xF]

    def test_load_and_add(self):
        chip = Chip8()
        chip.load(program(0x6005, 0x6103, 0x8014))
        run(chip, 3)
        self.assertEqual(chip.v_regs[0], 8)
        self.assertEqual(chip.v_regs[0xF], 0)
        self.assertEqual(chip.pc, 0x206)

    def test_add_carry(self):
        for vx in range(0, 256, 15):
            for vy in range(0, 256, 15):
                self.assertEqual(self.execute(0x8124, vx, vy),
                                 ((vx + vy) % 256, 1 if vx + vy > 255 else 0))

    def test_sub_not_borrow(self):
        for vx in range(0, 256, 15):
            for vy in range(0, 256, 15):
                self.assertEqual(self.execute(0x8125, vx, vy),
                                 ((vx - vy) % 256, 1 if vx > vy else 0))

    def test_subn_not_borrow(self):
        self.assertEqual(self.execute(0x8127, 3, 10), (7, 1))
        self.assertEqual(self.execute(0x8127, 10, 3), (249, 0))
        self.assertEqual(self.execute(0x8127, 5, 5), (0, 0))

    def test_shifts(self):
        self.assertEqual(self.execute(0x8126, 0b10000011, 0), (0b01000001, 1))
        self.assertEqual(self.execute(0x8126, 0b00000010, 0), (0b00000001, 0))
        self.assertEqual(self.execute(0x812E, 0b10000001, 0), (0b00000010, 1))
        self.assertEqual(self.execute(0x812E, 0b01000000, 0), (0b10000000, 0))

    def test_shift_ignores_vy(self):
        self.assertEqual(self.execute(0x8126, 0x04, 0xFF), (0x02, 0))

    def test_bitwise(self):
        self.chip.v_regs[0xF] = 7
        self.assertEqual(self.execute(0x8121, 0b1100, 0b1010)[0], 0b1110)
        self.assertEqual(self.execute(0x8122, 0b1100, 0b1010)[0], 0b1000)
        self.assertEqual(self.execute(0x8123, 0b1100, 0b1010)[0], 0b0110)
        self.assertEqual(self.execute(0x8120, 0b1100, 0b1010)[0], 0b1010)
        self.assertEqual(self.chip.v_regs[0xF], 7)

    def test_flag_wins_when_vf_is_the_target(self):
        self.assertEqual(self.execute(0x8F14, 0xFF, 0x01, x=0xF, y=0x1)[1], 1)
        self.assertEqual(self.execute(0x8F15, 0x01, 0x02, x=0xF, y=0x1)[1], 0)

    def test_add_constant_wraps_without_flag(self):
        chip = Chip8()
        chip.load(program(0x6AFF, 0x6F05, 0x7A02))
        run(chip, 3)
        self.assertEqual(chip.v_regs[0xA], 0x01)
        self.assertEqual(chip.v_regs[0xF], 0x05)

    def test_random_is_masked(self):
        chip = Chip8(rng=FixedRandom(0xAB))
        chip.load(program(0xC30F))
        chip.cycle()
        self.assertEqual(chip.v_regs[3], 0x0B)


class TestFlow(unittest.TestCase):
    def test_jump(self):
        chip = Chip8()
        chip.load(program(0x1234))
        chip.cycle()
        self.assertEqual(chip.pc, 0x234)

    def test_skips(self):
        cases = [
            (0x3142, 0x42, 0x00, True), (0x3142, 0x41, 0x00, False),
            (0x4142, 0x41, 0x00, True), (0x4142, 0x42, 0x00, False),
            (0x5120, 0x07, 0x07, True), (0x5120, 0x07, 0x08, False),
            (0x9120, 0x07, 0x08, True), (0x9120, 0x07, 0x07, False),
        ]
        for opcode, v1, v2, skipped in cases:
            chip = Chip8()
            chip.v_regs[1], chip.v_regs[2] = v1, v2
            chip.load(program(opcode))
            chip.cycle()
            self.assertEqual(chip.pc, 0x204 if skipped else 0x202, hex(opcode))

    def test_nested_calls_return_at_every_depth(self):
        chip = Chip8()
        chip.load(program(0x2300, 0x1202))
        subroutines = [0x300 + 0x10 * depth for depth in range(16)]
        for here, callee in zip(subroutines, subroutines[1:]):
            poke(chip, here, 0x2000 | callee, 0x00EE)
        poke(chip, subroutines[-1], 0x00EE)
        run(chip, 16)
        self.assertEqual(chip.pc, subroutines[-1])
        self.assertEqual(len(chip.stack), 16)
        expected = [address + 2 for address in reversed(subroutines[:-1])] + [0x202]
        for address in expected:
            chip.cycle()
            self.assertEqual(chip.pc, address)
        self.assertEqual(len(chip.stack), 0)
        self.assertIs(chip.state, RunState.RUNNING)

    def test_seventeenth_call_halts(self):
        chip = Chip8()
        for i in range(17):
            poke(chip, ROM_START_ADDRESS + 2 * i, 0x2000 | (ROM_START_ADDRESS + 2 * (i + 1)))
        run(chip, 16)
        self.assertIs(chip.state, RunState.RUNNING)
        self.assertIs(chip.cycle(), RunState.HALTED)
        self.assertIsInstance(chip.fault, StackOverflowError)
        self.assertEqual(len(chip.stack), 16)
        self.assertEqual(chip.pc, ROM_START_ADDRESS + 2 * 17)

    def test_return_with_empty_stack_halts(self):
        chip = Chip8()
        chip.load(program(0x00EE))
        chip.cycle()
        self.assertTrue(chip.halted)
        self.assertIsInstance(chip.fault, StackUnderflowError)
        self.assertEqual(chip.pc, 0x202)


class TestHalt(unittest.TestCase):
    def test_unknown_instruction_halts_for_good(self):
        chip = Chip8()
        chip.load(program(0x6001, 0xFFFF, 0x6002))
        chip.cycle()
        self.assertIs(chip.cycle(), RunState.HALTED)
        self.assertIsInstance(chip.fault, UnknownInstructionError)
        self.assertEqual(chip.fault.opcode, 0xFFFF)
        self.assertEqual(chip.pc, 0x204)
        run(chip, 5)
        self.assertEqual(chip.pc, 0x204)
        self.assertEqual(chip.v_regs[0], 1)

    def test_offset_jump_is_not_recognized(self):
        chip = Chip8()
        chip.load(program(0xB300))
        chip.cycle()
        self.assertTrue(chip.halted)
        self.assertEqual(chip.fault.opcode, 0xB300)

    def test_key_press_does_not_resume_halted(self):
        chip = Chip8()
        chip.load(program(0x0000))
        chip.cycle()
        chip.key_down(0x5)
        self.assertTrue(chip.halted)

    def test_timers_tick_while_halted(self):
        chip = Chip8()
        chip.load(program(0x6009, 0xF015, 0x0000))
        run(chip, 3)
        self.assertTrue(chip.halted)
        chip.tick()
        self.assertEqual(chip.timers.dt, 8)

    def test_dump_mentions_fault(self):
        chip = Chip8()
        chip.load(program(0xB123))
        chip.cycle()
        self.assertIn("0xb123", str(chip))
        self.assertIn("halted", str(chip))


class TestDisplay(unittest.TestCase):
    def test_clear_screen(self):
        chip = Chip8()
        chip.load(program(0xA000, 0xD005, 0x00E0))
        run(chip, 2)
        self.assertTrue(any(chip.display.buffer))
        chip.cycle()
        self.assertTrue(chip.draw)
        self.assertTrue(all(pixel == 0 for row in chip.frame() for pixel in row))

    def test_draw_glyph(self):
        chip = Chip8()
        # I = glyph 0, draw at (V1, V2) = (4, 3)
        chip.load(program(0x6000, 0xF029, 0x6104, 0x6203, 0xD125))
        run(chip, 5)
        self.assertTrue(chip.draw)
        rows = chip.frame()
        self.assertEqual(rows[3][4:8], [1, 1, 1, 1])
        self.assertEqual(rows[4][4:8], [1, 0, 0, 1])
        self.assertEqual(chip.v_regs[0xF], 0)

    def test_draw_twice_restores_and_collides(self):
        chip = Chip8()
        chip.load(program(0xA00A, 0x6F01, 0xD125, 0xD125))
        run(chip, 2)
        before = chip.frame()
        chip.cycle()
        self.assertEqual(chip.v_regs[0xF], 0)
        self.assertNotEqual(chip.frame(), before)
        chip.cycle()
        self.assertEqual(chip.v_regs[0xF], 1)
        self.assertEqual(chip.frame(), before)

    def test_draw_flag_resets_each_cycle(self):
        chip = Chip8()
        chip.load(program(0xD001, 0x6000))
        chip.cycle()
        self.assertTrue(chip.draw)
        chip.cycle()
        self.assertFalse(chip.draw)


class TestKeys(unittest.TestCase):
    def test_wait_for_key(self):
        chip = Chip8()
        chip.load(program(0xF50A, 0x6001))
        self.assertIs(chip.cycle(), RunState.WAITING_FOR_KEY)
        run(chip, 3)
        self.assertEqual(chip.pc, 0x202)
        self.assertEqual(chip.v_regs[0], 0)
        chip.key_down(0xC)
        self.assertIs(chip.state, RunState.RUNNING)
        self.assertEqual(chip.v_regs[5], 0xC)
        chip.cycle()
        self.assertEqual(chip.v_regs[0], 1)

    def test_out_of_range_key_does_not_resume(self):
        chip = Chip8()
        chip.load(program(0xF50A))
        chip.cycle()
        chip.key_down(16)
        self.assertIs(chip.state, RunState.WAITING_FOR_KEY)
        self.assertTrue(chip.keypad.untouched())

    def test_skip_if_pressed(self):
        chip = Chip8()
        chip.load(program(0x6307, 0xE39E, 0x0000, 0xE3A1))
        chip.key_down(0x7)
        run(chip, 2)
        self.assertEqual(chip.pc, 0x206)
        chip.key_up(0x7)
        chip.cycle()
        self.assertEqual(chip.pc, 0x20A)


class TestTimersAndIndex(unittest.TestCase):
    def test_delay_and_sound_timers(self):
        chip = Chip8()
        chip.load(program(0x6A03, 0xFA15, 0xFA18, 0xFB07))
        run(chip, 3)
        self.assertTrue(chip.sound_active)
        chip.tick()
        chip.cycle()
        self.assertEqual(chip.v_regs[0xB], 2)
        for _ in range(5):
            chip.tick()
        self.assertEqual((chip.timers.dt, chip.timers.st), (0, 0))
        self.assertFalse(chip.sound_active)

    def test_add_to_index_keeps_sixteen_bits(self):
        chip = Chip8()
        chip.load(program(0xAFFF, 0x6110, 0xF11E))
        run(chip, 3)
        self.assertEqual(chip.idx, 0x100F)
        chip.idx = 0xFFFF
        chip.v_regs[1] = 2
        poke(chip, chip.pc, 0xF11E)
        chip.cycle()
        self.assertEqual(chip.idx, 0x0001)

    def test_font_location(self):
        chip = Chip8()
        chip.load(program(0x620A, 0xF229))
        run(chip, 2)
        self.assertEqual(chip.idx, 50)
        self.assertEqual(chip.mem[chip.idx], 0xF0)

    def test_bcd(self):
        chip = Chip8()
        chip.load(program(0xA300, 0x64FE, 0xF433))
        run(chip, 3)
        self.assertEqual([chip.mem[0x300 + i] for i in range(3)], [2, 5, 4])

    def test_store_and_load_registers(self):
        chip = Chip8()
        chip.v_regs[:4] = [9, 8, 7, 6]
        chip.load(program(0xA400, 0xF255, 0x6000, 0x6100, 0x6200, 0x6300, 0xF365))
        run(chip, 2)
        self.assertEqual([chip.mem[0x400 + i] for i in range(4)], [9, 8, 7, 0])
        self.assertEqual(chip.idx, 0x400)
        run(chip, 5)
        self.assertEqual(chip.v_regs[:4], [9, 8, 7, 0])


class TestTrace(unittest.TestCase):
    def trace(self, *opcodes):
        chip = Chip8()
        chip.load(program(*opcodes))
        out = io.StringIO()
        with mock.patch.object(cpu, "DEBUG", True), contextlib.redirect_stdout(out):
            run(chip, len(opcodes))
        return out.getvalue().splitlines()

    def test_line_format(self):
        self.assertEqual(self.trace(0x6005, 0xD125),
                         ["mem_addr: 0x0200    instruction: LD V0, 5",
                          "mem_addr: 0x0202    instruction: DRW V1, V2, 5"])

    def test_every_instruction_traces(self):
        for name, pattern in OPCODES.items():
            lines = self.trace(pattern)
            if name == "RET":
                self.assertEqual(lines, ["halted at 0x0200: Return with an empty CHIP-8 stack"])
            else:
                self.assertEqual(len(lines), 1, name)
                self.assertTrue(lines[0].startswith("mem_addr: 0x0200    instruction: "), name)


if __name__ == "__main__":
    unittest.main()
