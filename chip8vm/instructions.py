from collections import namedtuple

from .errors import UnknownInstructionError


# X = bits 8-11, Y = bits 4-7, N = bits 0-3, NN = bits 0-7, NNN = bits 0-11
Instruction = namedtuple('Instruction', ['name', 'opcode', 'x', 'y', 'n', 'nn', 'nnn'])

# WATCH OUT: masks order is important!!!
# decode stops at the first mask under which the opcode matches a known pattern
MASKS = {
    0xFFFF: {0x00E0: 'CLS', 0x00EE: 'RET'},
    0xF0FF: {
        0xE09E: 'SKP_VX', 0xE0A1: 'SKNP_VX',
        0xF007: 'LD_VX_DT', 0xF00A: 'LD_VX_K', 0xF015: 'LD_DT_VX', 0xF018: 'LD_ST_VX',
        0xF01E: 'ADD_I_VX', 0xF029: 'LD_F_VX', 0xF033: 'LD_B_VX',
        0xF055: 'LD_I_VX', 0xF065: 'LD_VX_I',
    },
    0xF00F: {
        0x5000: 'SE_VX_VY', 0x9000: 'SNE_VX_VY',
        0x8000: 'LD_VX_VY', 0x8001: 'OR_VX_VY', 0x8002: 'AND_VX_VY', 0x8003: 'XOR_VX_VY',
        0x8004: 'ADD_VX_VY', 0x8005: 'SUB_VX_VY', 0x8006: 'SHR_VX', 0x8007: 'SUBN_VX_VY',
        0x800E: 'SHL_VX',
    },
    0xF000: {
        0x1000: 'JP', 0x2000: 'CALL', 0x3000: 'SE_VX_NN', 0x4000: 'SNE_VX_NN',
        0x6000: 'LD_VX_NN', 0x7000: 'ADD_VX_NN', 0xA000: 'LD_I', 0xC000: 'RND_VX_NN',
        0xD000: 'DRW',
    },
}

# every recognized instruction, indexed by name
OPCODES = {name: pattern for ops in MASKS.values() for pattern, name in ops.items()}


def decode(opcode):
    """split a 16 bit opcode into its operands, raise UnknownInstructionError for unassigned encodings"""
    for mask, ops in MASKS.items():
        name = ops.get(opcode & mask)
        if name is not None:
            return Instruction(
                name=name,
                opcode=opcode,
                x=(opcode & 0x0F00) >> 8,
                y=(opcode & 0x00F0) >> 4,
                n=opcode & 0x000F,
                nn=opcode & 0x00FF,
                nnn=opcode & 0x0FFF,
            )
    raise UnknownInstructionError(opcode)
