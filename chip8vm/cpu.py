import enum
import random
from functools import wraps

from .config import DEBUG, FONT_GLYPH_SIZE, REGISTERS, ROM_START_ADDRESS
from .devices import Display, Keypad, Timers
from .errors import Chip8Error
from .instructions import decode
from .memory import Memory, Stack


# ******************** UTILITIES SECTION
def asm(msg):
    """decorator to print out the ASM of the instruction being called"""
    def decorator(fn):
        @wraps(fn)
        def wrapper_fn(*args, **kwargs):
            mem_addr = (args[0].pc - 2) & 0xFFF     # args[0] equals self, pc already points past the instruction
            vals = fn(*args, **kwargs)              # use the locals() values of each decorated function in the print
            if DEBUG:
                vals['mem_addr'] = mem_addr
                print(msg.format(**vals))
        return wrapper_fn
    return decorator


class RunState(enum.Enum):
    RUNNING = "running"
    WAITING_FOR_KEY = "waiting for key"
    HALTED = "halted"


# ******************** CPU SECTION
class Chip8:
    def __init__(self, display=None, keypad=None, rng=None):
        self.mem = Memory()
        self.stack = Stack()
        self.v_regs = [0] * REGISTERS
        self.pc = ROM_START_ADDRESS
        self.idx = 0            # specify where the sprites reside in memory
        self.timers = Timers()  # delay/sound timers, ticked by the host
        self.display = display if display is not None else Display()
        self.keypad = keypad if keypad is not None else Keypad()
        self.rng = rng if rng is not None else random.Random()
        self.state = RunState.RUNNING
        self.key_register = None    # register receiving the key while in WAITING_FOR_KEY
        self.fault = None           # the Chip8Error that halted the machine
        self.draw = False
        self.instructions = {
            'CLS': self._clear_screen,
            'RET': self._return,
            'JP': self._jump,
            'CALL': self._call_addr,
            'SE_VX_NN': self._skip_if_eq,
            'SNE_VX_NN': self._skip_if_not_eq,
            'SE_VX_VY': self._skip_if_eq_regs,
            'LD_VX_NN': self._set_vk,
            'ADD_VX_NN': self._add_to_vk,
            'LD_VX_VY': self._set_vx_to_vy,
            'OR_VX_VY': self._set_vx_or_vy,
            'AND_VX_VY': self._set_vx_and_vy,
            'XOR_VX_VY': self._set_vx_xor_vy,
            'ADD_VX_VY': self._add_vx_vy,
            'SUB_VX_VY': self._sub_vx_vy,
            'SHR_VX': self._shr,
            'SUBN_VX_VY': self._subn_vx_vy,
            'SHL_VX': self._shl,
            'SNE_VX_VY': self._skip_if_not_eq_regs,
            'LD_I': self._set_idx,
            'RND_VX_NN': self._random_byte_and,
            'DRW': self._to_screen,
            'SKP_VX': self._skip_if_pressed,
            'SKNP_VX': self._skip_if_not_pressed,
            'LD_VX_DT': self._set_vx_dt,
            'LD_VX_K': self._wait_keypress,
            'LD_DT_VX': self._set_dt_vx,
            'LD_ST_VX': self._set_st,
            'ADD_I_VX': self._add_to_idx,
            'LD_F_VX': self._select_char,
            'LD_B_VX': self._bcd_repr,
            'LD_I_VX': self._store_vregs,
            'LD_VX_I': self._load_vregs,
        }

    def __str__(self):
        registers = f"PC_REGISTER:0x{self.pc:03x} | IDX_REGISTER:0x{self.idx:04x} | VARIABLE_REGISTERS:{self.v_regs}"
        timers = f"DELAY_TIMER:{self.timers.dt} | SOUND_TIMER:{self.timers.st}"
        stack = f"STACK:{self.stack}"
        state = f"STATE:{self.state.value} | KEYPAD:{self.keypad}"
        if self.fault:
            state += f" | FAULT:{self.fault}"
        return f"{registers}\n{timers}\n{stack}\n{state}"

    @property
    def halted(self):
        return self.state is RunState.HALTED

    @property
    def sound_active(self):
        """the buzzer should sound while the sound timer is non-zero"""
        return self.timers.st > 0

    def load(self, data):
        self.mem.load(data)

    def frame(self):
        return self.display.rows()

    # ********** HOST EVENTS
    def key_down(self, key):
        if not 0 <= key < len(self.keypad.keys):
            return
        self.keypad[key] = True
        if self.state is RunState.WAITING_FOR_KEY:
            self.v_regs[self.key_register] = key
            self.key_register = None
            self.state = RunState.RUNNING

    def key_up(self, key):
        self.keypad[key] = False

    def tick(self):
        """one 1/60s step of the delay and sound timers, keeps going even when halted"""
        self.timers.tick()

    # ********** INSTRUCTIONS
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: CLS")
    def _clear_screen(self, ins):
        self.display.clear()
        self.draw = True
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: RET")
    def _return(self, ins):
        """return from a subroutine"""
        self.pc = self.stack.pop()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: JP 0x{address:03x}")
    def _jump(self, ins):
        address = ins.nnn
        self.pc = address
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: CALL 0x{address:03x}")
    def _call_addr(self, ins):
        address = ins.nnn
        self.stack.push(self.pc)
        self.pc = address
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SE V{x:X}, {comparison_value}")
    def _skip_if_eq(self, ins):
        x, comparison_value = ins.x, ins.nn
        if self.v_regs[x] == comparison_value:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SNE V{x:X}, {comparison_value}")
    def _skip_if_not_eq(self, ins):
        x, comparison_value = ins.x, ins.nn
        if self.v_regs[x] != comparison_value:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SE V{x:X}, V{y:X}")
    def _skip_if_eq_regs(self, ins):
        x, y = ins.x, ins.y
        if self.v_regs[x] == self.v_regs[y]:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SNE V{x:X}, V{y:X}")
    def _skip_if_not_eq_regs(self, ins):
        x, y = ins.x, ins.y
        if self.v_regs[x] != self.v_regs[y]:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x:X}, {value}")
    def _set_vk(self, ins):
        """set the value of one of the 16 variable registers, Vx"""
        x, value = ins.x, ins.nn
        self.v_regs[x] = value
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: ADD V{x:X}, {value}")
    def _add_to_vk(self, ins):
        """add to the value already present in one of the variable registers, VF untouched"""
        x, value = ins.x, ins.nn
        self.v_regs[x] = (self.v_regs[x] + value) & 0xFF    # keep only the lowest 8 bits
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x:X}, V{y:X}")
    def _set_vx_to_vy(self, ins):
        x, y = ins.x, ins.y
        self.v_regs[x] = self.v_regs[y]
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: OR V{x:X}, V{y:X}")
    def _set_vx_or_vy(self, ins):
        x, y = ins.x, ins.y
        self.v_regs[x] |= self.v_regs[y]
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: AND V{x:X}, V{y:X}")
    def _set_vx_and_vy(self, ins):
        x, y = ins.x, ins.y
        self.v_regs[x] &= self.v_regs[y]
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: XOR V{x:X}, V{y:X}")
    def _set_vx_xor_vy(self, ins):
        x, y = ins.x, ins.y
        self.v_regs[x] ^= self.v_regs[y]
        return locals()

    # the flag is written after the result, so VF holds the flag when x == 0xF
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: ADD V{x:X}, V{y:X}")
    def _add_vx_vy(self, ins):
        """set Vx = Vx + Vy, VF = carry"""
        x, y = ins.x, ins.y
        total = self.v_regs[x] + self.v_regs[y]
        self.v_regs[x] = total & 0xFF
        self.v_regs[0xF] = 1 if total > 0xFF else 0
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SUB V{x:X}, V{y:X}")
    def _sub_vx_vy(self, ins):
        """set Vx = Vx - Vy, VF = NOT borrow"""
        x, y = ins.x, ins.y
        not_borrow = 1 if self.v_regs[x] > self.v_regs[y] else 0
        self.v_regs[x] = (self.v_regs[x] - self.v_regs[y]) & 0xFF
        self.v_regs[0xF] = not_borrow
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SHR V{x:X}")
    def _shr(self, ins):
        """set Vx = Vx SHR 1, VF = the bit shifted out"""
        x = ins.x
        lsb = self.v_regs[x] & 0x1
        self.v_regs[x] >>= 1
        self.v_regs[0xF] = lsb
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SUBN V{x:X}, V{y:X}")
    def _subn_vx_vy(self, ins):
        """set Vx = Vy - Vx, VF = NOT borrow"""
        x, y = ins.x, ins.y
        not_borrow = 1 if self.v_regs[y] > self.v_regs[x] else 0
        self.v_regs[x] = (self.v_regs[y] - self.v_regs[x]) & 0xFF
        self.v_regs[0xF] = not_borrow
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SHL V{x:X}")
    def _shl(self, ins):
        """set Vx = Vx SHL 1, VF = the bit shifted out"""
        x = ins.x
        msb = (self.v_regs[x] & 0x80) >> 7
        self.v_regs[x] = (self.v_regs[x] << 1) & 0xFF
        self.v_regs[0xF] = msb
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD I, 0x{value:03x}")
    def _set_idx(self, ins):
        value = ins.nnn
        self.idx = value
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: RND V{x:X}, 0x{kk:02x}")
    def _random_byte_and(self, ins):
        x, kk = ins.x, ins.nn
        rnd = self.rng.randint(0, 255)
        self.v_regs[x] = rnd & kk
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: DRW V{x:X}, V{y:X}, {n_bytes}")
    def _to_screen(self, ins):
        """display n-byte sprite starting at memory location I at (Vx, Vy), set VF = collision"""
        x, y, n_bytes = ins.x, ins.y, ins.n
        sprite = [self.mem[self.idx + i] for i in range(n_bytes)]
        collision = self.display.blit(self.v_regs[x], self.v_regs[y], sprite)
        self.v_regs[0xF] = 1 if collision else 0
        self.draw = True
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SKP V{x:X}")
    def _skip_if_pressed(self, ins):
        """skip the following instruction if the key corresponding to the hex value stored in Vx is pressed"""
        x = ins.x
        if self.keypad[self.v_regs[x]]:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SKNP V{x:X}")
    def _skip_if_not_pressed(self, ins):
        """skip the following instruction if the key corresponding to the hex value stored in Vx is NOT pressed"""
        x = ins.x
        if not self.keypad[self.v_regs[x]]:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x:X}, DT")
    def _set_vx_dt(self, ins):
        x = ins.x
        self.v_regs[x] = self.timers.dt
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x:X}, K")
    def _wait_keypress(self, ins):
        """pause execution until the next key press, whose value lands in Vx (see key_down)"""
        x = ins.x
        self.key_register = x
        self.state = RunState.WAITING_FOR_KEY
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD DT, V{x:X}")
    def _set_dt_vx(self, ins):
        x = ins.x
        self.timers.dt = self.v_regs[x]
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD ST, V{x:X}")
    def _set_st(self, ins):
        x = ins.x
        self.timers.st = self.v_regs[x]
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: ADD I, V{x:X}")
    def _add_to_idx(self, ins):
        x = ins.x
        self.idx = (self.idx + self.v_regs[x]) & 0xFFFF
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD F, V{x:X}")
    def _select_char(self, ins):
        """set I to location of sprite for digit Vx"""
        x = ins.x
        self.idx = self.v_regs[x] * FONT_GLYPH_SIZE
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD B, V{x:X}")
    def _bcd_repr(self, ins):
        """store the hundreds digit of Vx in memory at I, the tens digit at I+1, the ones digit at I+2"""
        x = ins.x
        value = self.v_regs[x]
        self.mem[self.idx] = value // 100
        self.mem[self.idx + 1] = value // 10 % 10
        self.mem[self.idx + 2] = value % 10
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD [I], V{x:X}")
    def _store_vregs(self, ins):
        """store registers V0 through Vx (included) in memory starting at location I"""
        x = ins.x
        for i in range(x + 1):
            self.mem[self.idx + i] = self.v_regs[i]
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x:X}, [I]")
    def _load_vregs(self, ins):
        """read registers V0 through Vx (included) from memory starting at location I"""
        x = ins.x
        for i in range(x + 1):
            self.v_regs[i] = self.mem[self.idx + i]
        return locals()

    # ********** FETCH / DECODE / EXECUTE
    def _goto_next_instruction(self):
        self.pc = (self.pc + 0x2) & 0xFFF

    def _halt(self, err):
        self.fault = err
        self.key_register = None
        self.state = RunState.HALTED
        if DEBUG: print(f"halted at 0x{(self.pc - 2) & 0xFFF:04x}: {err}")

    def execute(self, instruction):
        self.instructions[instruction.name](instruction)

    def cycle(self):
        """
        emulate one machine cycle: fetch, decode and execute a single instruction
        does nothing unless the machine is RUNNING, returns the state reached
        """
        self.draw = False
        if self.state is not RunState.RUNNING:
            return self.state
        # fetch (each instruction is two bytes long)
        opcode = self.mem.read_word(self.pc)
        self._goto_next_instruction()
        try:
            self.execute(decode(opcode))
        except Chip8Error as err:
            self._halt(err)
        return self.state
