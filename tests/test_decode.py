"""Tests for instruction decoding."""

import pytest
import jax
import jax.numpy as jnp
import numpy as np
from chipcore import InvalidOp, Op, decode, decode_word, hi_nib, lo_nib
from chipcore.decode import INVALID


def test_nibbles():
    assert hi_nib(0xA7) == 0xA
    assert lo_nib(0xA7) == 0x7
    assert hi_nib(0x00) == 0 and lo_nib(0xFF) == 0xF


def test_operand_extraction():
    instruction = decode(0xD2A7)
    assert instruction.operation == Op.DRW
    assert instruction.raw == 0xD2A7
    assert instruction.x == 0x2
    assert instruction.y == 0xA
    assert instruction.n == 0x7
    assert instruction.nn == 0xA7
    assert instruction.nnn == 0x2A7


@pytest.mark.parametrize("word, op", [
    (0x0000, Op.SYS),
    (0x0FFF, Op.SYS),
    (0x00E0, Op.CLS),
    (0x00EE, Op.RET),
    (0x1234, Op.JP),
    (0x2234, Op.CALL),
    (0x3122, Op.SE_IMM),
    (0x4122, Op.SNE_IMM),
    (0x5120, Op.SE_REG),
    (0x6122, Op.LD_IMM),
    (0x7122, Op.ADD_IMM),
    (0x8120, Op.LD_REG),
    (0x8121, Op.OR),
    (0x8122, Op.AND),
    (0x8123, Op.XOR),
    (0x8124, Op.ADD_REG),
    (0x8125, Op.SUB),
    (0x8126, Op.SHR),
    (0x8127, Op.SUBN),
    (0x812E, Op.SHL),
    (0x9120, Op.SNE_REG),
    (0xA123, Op.LD_I),
    (0xB123, Op.JP_V0),
    (0xC1FF, Op.RND),
    (0xD125, Op.DRW),
    (0xE19E, Op.SKP),
    (0xE1A1, Op.SKNP),
    (0xF107, Op.LD_VX_DT),
    (0xF10A, Op.LD_VX_K),
    (0xF115, Op.LD_DT_VX),
    (0xF118, Op.LD_ST_VX),
    (0xF11E, Op.ADD_I),
    (0xF129, Op.LD_F),
    (0xF133, Op.LD_B),
    (0xF155, Op.LD_MEM_VX),
    (0xF165, Op.LD_VX_MEM),
])
def test_decode_table(word, op):
    assert decode(word).operation == op


def test_op_count():
    """34 instructions plus the ignored machine call."""
    assert len(Op) == 35


@pytest.mark.parametrize("word", [
    0x5121,  # 5XY0 with nonzero low nibble
    0x912F,
    0x8128,
    0x812F,
    0xE100,
    0xE19F,
    0xF100,
    0xF1FF,
    0xF166,
])
def test_invalid_opcodes(word):
    with pytest.raises(InvalidOp) as excinfo:
        decode(word)
    assert excinfo.value.words == (word >> 8, word & 0xFF)
    assert f"{word:04X}" in str(excinfo.value)


def test_decode_is_pure():
    assert decode(0x6342) == decode(0x6342)


def test_decode_word_agrees_with_decode():
    """The jitted decoder classifies every 16-bit word like the Python one."""
    decoded = jax.jit(jax.vmap(decode_word))(jnp.arange(0x10000))
    ops = np.asarray(decoded.op)
    xs = np.asarray(decoded.x)
    nnns = np.asarray(decoded.nnn)

    for word in range(0x10000):
        try:
            expected = decode(word)
        except InvalidOp:
            assert ops[word] == INVALID, f"{word:04X}"
            continue
        assert ops[word] == expected.op, f"{word:04X}"
        assert xs[word] == expected.x
        assert nnns[word] == expected.nnn


@pytest.mark.parametrize("word, op", [
    (0x00E0, Op.CLS),
    (0x01E0, Op.SYS),
    (0x00EE, Op.RET),
    (0x10EE, Op.JP),
    (0x5AB0, Op.SE_REG),
    (0xF155, Op.LD_MEM_VX),
])
def test_decode_word_traced(word, op):
    instruction = jax.jit(decode_word)(jnp.uint16(word))
    assert int(instruction.op) == op
    assert 0 <= int(instruction.x) <= 0xF
