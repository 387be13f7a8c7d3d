"""CHIP-8 instruction decoding."""

import enum
from typing import Optional

import jax.numpy as jnp
import numpy as np
from chex import dataclass

from chipcore.errors import InvalidOp


class Op(enum.IntEnum):
    """Every instruction the interpreter executes.

    Values double as branch indices into the handler table of
    :func:`chipcore.emulator.execute`, so the order matters.
    """
    SYS = 0         # 0NNN
    CLS = 1         # 00E0
    RET = 2         # 00EE
    JP = 3          # 1NNN
    CALL = 4        # 2NNN
    SE_IMM = 5      # 3XNN
    SNE_IMM = 6     # 4XNN
    SE_REG = 7      # 5XY0
    LD_IMM = 8      # 6XNN
    ADD_IMM = 9     # 7XNN
    LD_REG = 10     # 8XY0
    OR = 11         # 8XY1
    AND = 12        # 8XY2
    XOR = 13        # 8XY3
    ADD_REG = 14    # 8XY4
    SUB = 15        # 8XY5
    SHR = 16        # 8XY6
    SUBN = 17       # 8XY7
    SHL = 18        # 8XYE
    SNE_REG = 19    # 9XY0
    LD_I = 20       # ANNN
    JP_V0 = 21      # BNNN
    RND = 22        # CXNN
    DRW = 23        # DXYN
    SKP = 24        # EX9E
    SKNP = 25       # EXA1
    LD_VX_DT = 26   # FX07
    LD_VX_K = 27    # FX0A
    LD_DT_VX = 28   # FX15
    LD_ST_VX = 29   # FX18
    ADD_I = 30      # FX1E
    LD_F = 31       # FX29
    LD_B = 32       # FX33
    LD_MEM_VX = 33  # FX55
    LD_VX_MEM = 34  # FX65


# Op value decode_word reports for unknown words
INVALID = -1


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    op: int      # Op value, kept a plain int so the instruction stays a valid pytree
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)

    @property
    def operation(self) -> Op:
        return Op(self.op)


def hi_nib(byte: int) -> int:
    return (byte >> 4) & 0xF


def lo_nib(byte: int) -> int:
    return byte & 0xF


# Families fully identified by their first nibble
_SIMPLE_FAMILIES = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_IMM,
    0x4: Op.SNE_IMM,
    0x6: Op.LD_IMM,
    0x7: Op.ADD_IMM,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}

# 8XYN, keyed by N
_ALU_OPS = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

# EXNN and FXNN, keyed by NN
_KEY_OPS = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

_MISC_OPS = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I,
    0x29: Op.LD_F,
    0x33: Op.LD_B,
    0x55: Op.LD_MEM_VX,
    0x65: Op.LD_VX_MEM,
}


def _match(w0: int, w1: int) -> Optional[Op]:
    family = hi_nib(w0)
    if family in _SIMPLE_FAMILIES:
        return _SIMPLE_FAMILIES[family]
    if family == 0x0:
        if w0 == 0x00 and w1 == 0xE0:
            return Op.CLS
        if w0 == 0x00 and w1 == 0xEE:
            return Op.RET
        return Op.SYS
    if family == 0x5 and lo_nib(w1) == 0:
        return Op.SE_REG
    if family == 0x9 and lo_nib(w1) == 0:
        return Op.SNE_REG
    if family == 0x8 and lo_nib(w1) in _ALU_OPS:
        return _ALU_OPS[lo_nib(w1)]
    if family == 0xE and w1 in _KEY_OPS:
        return _KEY_OPS[w1]
    if family == 0xF and w1 in _MISC_OPS:
        return _MISC_OPS[w1]
    return None


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components.

    `x` and `y` come from single nibbles, so they always index one of the 16
    registers.

    Raises:
        InvalidOp: if the word matches no known opcode pattern.
    """
    instruction = int(instruction) & 0xFFFF
    w0, w1 = instruction >> 8, instruction & 0xFF
    op = _match(w0, w1)
    if op is None:
        raise InvalidOp(words=(w0, w1))
    return DecodedInstruction(
        raw=instruction,
        op=int(op),
        x=lo_nib(w0),
        y=hi_nib(w1),
        n=lo_nib(w1),
        nn=w1,
        nnn=(lo_nib(w0) << 8) | w1,
    )


def _build_op_table() -> np.ndarray:
    # Only 0NNN needs the X nibble, handled in decode_word
    table = np.full((16, 256), INVALID, dtype=np.int32)
    for family in range(16):
        for w1 in range(256):
            op = _match(family << 4, w1)
            if op is not None:
                table[family, w1] = op
    return table


# Op value for every (first nibble, low byte) pair
OP_TABLE = jnp.asarray(_build_op_table())


def decode_word(word: jnp.ndarray) -> DecodedInstruction:
    """Traceable counterpart of :func:`decode` for use under jit.

    Words matching no pattern get ``op == INVALID`` instead of raising.
    """
    word = jnp.astype(word, jnp.int32) & 0xFFFF
    w0 = word >> 8
    w1 = word & 0xFF
    family = w0 >> 4
    op = OP_TABLE[family, w1]
    op = jnp.where((family == 0) & (w0 != 0), int(Op.SYS), op)
    return DecodedInstruction(
        raw=word,
        op=op,
        x=jnp.astype(w0 & 0xF, jnp.uint8),
        y=jnp.astype(w1 >> 4, jnp.uint8),
        n=jnp.astype(w1 & 0xF, jnp.uint8),
        nn=jnp.astype(w1, jnp.uint8),
        nnn=jnp.astype(word & 0xFFF, jnp.uint16),
    )
