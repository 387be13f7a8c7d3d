"""Tests for ALU operations (8xxx)."""

import pytest
from conftest import run, run_with_cost, set_registers


class TestBasicALU:
    """Test register-to-register logic operations."""

    def test_alu_set_basic(self, fresh_state):
        """8XY0 - Set VX = VY."""
        state = set_registers(fresh_state, V1=0x42, V2=0x99)

        state, cost = run_with_cost(state, 0x8120)  # V1 = V2

        assert state.V[1] == 0x99
        assert state.V[2] == 0x99
        assert state.pc == 0x202
        assert cost == 27

    def test_alu_or_basic(self, fresh_state):
        """8XY1 - OR operation."""
        state = set_registers(fresh_state, V1=0xF0, V2=0x0F)

        state, cost = run_with_cost(state, 0x8121)  # V1 |= V2

        assert state.V[1] == 0xFF
        assert cost == 200

    def test_alu_and_basic(self, fresh_state):
        """8XY2 - AND operation."""
        state = set_registers(fresh_state, V1=0xF0, V2=0xF1)

        state = run(state, 0x8122)  # V1 &= V2

        assert state.V[1] == 0xF0

    def test_alu_xor_basic(self, fresh_state):
        """8XY3 - XOR operation."""
        state = set_registers(fresh_state, V1=0xFF, V2=0xF0)

        state = run(state, 0x8123)  # V1 ^= V2

        assert state.V[1] == 0x0F

    def test_logic_ops_leave_vf_alone(self, fresh_state):
        """Logic operations never touch the flag register."""
        for instruction in (0x8120, 0x8121, 0x8122, 0x8123):
            state = set_registers(fresh_state, V1=0x0F, V2=0xF0, VF=0x42)
            state = run(state, instruction)
            assert state.V[15] == 0x42, f"{instruction:04X} changed VF"


class TestALUArithmetic:
    """Test arithmetic ALU operations."""

    def test_alu_add_no_carry(self, fresh_state):
        """8XY4 - Add without carry."""
        state = set_registers(fresh_state, V1=0x01, V2=0x01)

        state, cost = run_with_cost(state, 0x8124)  # V1 += V2

        assert state.V[1] == 0x02
        assert state.V[15] == 0
        assert cost == 45

    def test_alu_add_with_carry(self, fresh_state):
        """8XY4 - Add with carry."""
        state = set_registers(fresh_state, V1=0xFF, V2=0x01)

        state = run(state, 0x8124)  # V1 += V2

        assert state.V[1] == 0x00  # 256 wraps to 0
        assert state.V[15] == 1

    def test_alu_add_max_operands(self, fresh_state):
        """8XY4 - 0xFF + 0xFF wraps to 0xFE with carry."""
        state = set_registers(fresh_state, V1=0xFF, V2=0xFF)

        state = run(state, 0x8124)

        assert state.V[1] == 0xFE
        assert state.V[15] == 1

    def test_alu_add_clears_stale_flag(self, fresh_state):
        """8XY4 - VF is overwritten even when there is no carry."""
        state = set_registers(fresh_state, V1=0x10, V2=0x20, VF=0x77)

        state = run(state, 0x8124)

        assert state.V[1] == 0x30
        assert state.V[15] == 0

    def test_alu_sub_xy_no_borrow(self, fresh_state):
        """8XY5 - Subtract VX - VY, no borrow."""
        state = set_registers(fresh_state, V1=0x02, V2=0x01)

        state, cost = run_with_cost(state, 0x8125)  # V1 -= V2

        assert state.V[1] == 0x01
        assert state.V[15] == 1
        assert cost == 200

    def test_alu_sub_xy_with_borrow(self, fresh_state):
        """8XY5 - Subtract VX - VY, with borrow."""
        state = set_registers(fresh_state, V1=0x01, V2=0x02)

        state = run(state, 0x8125)

        assert state.V[1] == 0xFF  # wraps
        assert state.V[15] == 0

    def test_alu_sub_xy_equal(self, fresh_state):
        """8XY5 - Equal operands give zero and no borrow."""
        state = set_registers(fresh_state, V1=0x80, V2=0x80)

        state = run(state, 0x8125)

        assert state.V[1] == 0x00
        assert state.V[15] == 1

    def test_alu_sub_yx_no_borrow(self, fresh_state):
        """8XY7 - Subtract VY - VX, no borrow."""
        state = set_registers(fresh_state, V1=0x10, V2=0x30)

        state = run(state, 0x8127)  # V1 = V2 - V1

        assert state.V[1] == 0x20
        assert state.V[15] == 1

    def test_alu_sub_yx_with_borrow(self, fresh_state):
        """8XY7 - Subtract VY - VX, with borrow."""
        state = set_registers(fresh_state, V1=0x30, V2=0x10)

        state = run(state, 0x8127)

        assert state.V[1] == 0xE0
        assert state.V[15] == 0


class TestALUShifts:
    """Test shift operations."""

    def test_shift_right_even(self, fresh_state):
        """8XY6 - Shift right, even number, VY ignored."""
        state = set_registers(fresh_state, V1=0x04, V2=0xFF)

        state, cost = run_with_cost(state, 0x8126)

        assert state.V[1] == 0x02
        assert state.V[15] == 0
        assert cost == 200

    def test_shift_right_odd(self, fresh_state):
        """8XY6 - Shift right, odd number."""
        state = set_registers(fresh_state, V3=0x05)

        state = run(state, 0x8346)

        assert state.V[3] == 0x02
        assert state.V[15] == 1

    def test_shift_left_overflow(self, fresh_state):
        """8XYE - Shift left, with overflow."""
        state = set_registers(fresh_state, V3=0x81, V4=0xFF)

        state = run(state, 0x834E)

        assert state.V[3] == 0x02
        assert state.V[15] == 1

    def test_shift_left_no_overflow(self, fresh_state):
        """8XYE - Shift left, MSB clear."""
        state = set_registers(fresh_state, V3=0x41)

        state = run(state, 0x834E)

        assert state.V[3] == 0x82
        assert state.V[15] == 0


class TestALUEdgeCases:
    """Test edge cases around the flag register."""

    def test_alu_self_operations(self, fresh_state):
        """Test operations where VX and VY are the same register."""
        state = set_registers(fresh_state, V5=0xAA)

        state = run(state, 0x8553)
        assert state.V[5] == 0x00, "Self XOR should result in 0"

        state = set_registers(state, V5=0x80)
        state = run(state, 0x8554)  # V5 += V5
        assert state.V[5] == 0x00, "Self ADD should wrap on overflow"
        assert state.V[15] == 1, "Self ADD should set carry flag"

    def test_vf_as_source(self, fresh_state):
        """VF used as an operand is read before the flag is written."""
        state = set_registers(fresh_state, V1=0x10, VF=0x42)

        state = run(state, 0x81F4)  # V1 += VF

        assert state.V[1] == 0x52
        assert state.V[15] == 0

    @pytest.mark.parametrize("instruction, vf, expected", [
        (0x8F14, 0xFF, 1),  # carry wins over the sum
        (0x8F15, 0x01, 0),  # borrow flag wins over the difference
        (0x8F06, 0x05, 1),  # shifted-out bit wins over the shift
    ])
    def test_flag_overrides_vf_result(self, fresh_state, instruction, vf, expected):
        """When X is F, VF ends up holding the flag."""
        state = set_registers(fresh_state, VF=vf, V1=0x05)

        state = run(state, instruction)

        assert state.V[15] == expected

    @pytest.mark.parametrize("n", [0x8, 0x9, 0xA, 0xB, 0xC, 0xD, 0xF])
    def test_alu_undefined_operations(self, fresh_state, n):
        """Undefined 8XYN variants are invalid instructions."""
        from chipcore import InvalidOp
        with pytest.raises(InvalidOp):
            run(fresh_state, 0x8120 | n)


class TestALUCosts:
    """Test the cost of every 8XYN variant."""

    @pytest.mark.parametrize("instruction, expected", [
        (0x8120, 27),   # LD
        (0x8121, 200),  # OR
        (0x8122, 200),  # AND
        (0x8123, 200),  # XOR
        (0x8124, 45),   # ADD
        (0x8125, 200),  # SUB
        (0x8126, 200),  # SHR
        (0x8127, 200),  # SUBN
        (0x812E, 200),  # SHL
    ])
    def test_cost(self, fresh_state, instruction, expected):
        state = set_registers(fresh_state, V1=0x81, V2=0x7F)

        state, cost = run_with_cost(state, instruction)

        assert cost == expected
        assert state.pc == 0x202
