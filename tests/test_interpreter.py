"""Tests for the host-facing Chip8 interpreter."""

import numpy as np
import pytest
from chix8 import Chip8, StepOutcome, MAX_PROGRAM_SIZE, PROGRAM_START
from chix8.logging import ConsoleLogger
from conftest import program


class TestLifecycle:

    def test_initial_state(self, chip8):
        assert chip8.pc == PROGRAM_START
        assert not chip8.registers.any()
        assert not chip8.get_framebuffer().any()
        assert not chip8.is_sound_active()
        assert not chip8.awaiting_key
        assert not chip8.halted

    def test_load_program_reports_success(self, chip8):
        assert chip8.load_program(program(0x6042))
        assert chip8.step(0.0) is StepOutcome.OK
        assert chip8.registers[0] == 0x42

    def test_load_program_too_large_leaves_memory(self, chip8):
        assert chip8.load_program(program(0x6042))
        assert not chip8.load_program(bytes(MAX_PROGRAM_SIZE + 1))
        chip8.step(0.0)
        assert chip8.registers[0] == 0x42

    def test_initialize_resets(self, chip8):
        chip8.load_program(program(0x6042, 0x00E0))
        chip8.step(0.0)
        chip8.initialize()
        assert chip8.pc == PROGRAM_START
        assert not chip8.registers.any()

    def test_same_seed_same_random_sequence(self, quiet_logger):
        rom = program(0xC0FF, 0xC1FF, 0xC2FF, 0xC3FF)
        machines = [Chip8(seed=7, logger=quiet_logger) for _ in range(2)]
        for machine in machines:
            machine.load_program(rom)
            for _ in range(4):
                machine.step(0.0)
        assert np.array_equal(machines[0].registers, machines[1].registers)


class TestOutcomes:

    def test_unknown_opcode_continues(self, chip8):
        chip8.load_program(program(0x0123, 0x6001))
        assert chip8.step(0.0) is StepOutcome.UNKNOWN_OPCODE
        assert not chip8.halted
        assert chip8.step(0.0) is StepOutcome.OK
        assert chip8.registers[0] == 1

    def test_stack_underflow_is_fatal(self, chip8):
        chip8.load_program(program(0x00EE))
        outcome = chip8.step(0.0)
        assert outcome is StepOutcome.STACK_UNDERFLOW
        assert outcome.is_fatal
        assert chip8.halted
        assert chip8.step(0.0) is StepOutcome.STACK_UNDERFLOW

    def test_stack_overflow_is_fatal(self, chip8):
        chip8.load_program(program(0x2200))  # Calls itself forever
        outcomes = [chip8.step(0.0) for _ in range(17)]
        assert outcomes[:16] == [StepOutcome.OK] * 16
        assert outcomes[16] is StepOutcome.STACK_OVERFLOW

    def test_unknown_opcode_is_not_fatal(self):
        assert not StepOutcome.UNKNOWN_OPCODE.is_fatal
        assert not StepOutcome.OK.is_fatal
        assert StepOutcome.PC_OUT_OF_BOUNDS.is_fatal

    def test_diagnostics_are_logged(self, capsys):
        chip8 = Chip8(logger=ConsoleLogger("test", use_colors=False, show_timestamps=False))
        chip8.load_program(program(0x0123, 0x00EE))
        chip8.step(0.0)
        chip8.step(0.0)
        chip8.step(0.0)

        lines = capsys.readouterr().out.splitlines()
        assert "Loaded 4 byte program" in lines[0]
        assert "[ WARNING][test] Unknown opcode 0123 at 0x200" in lines
        assert sum("STACK_UNDERFLOW" in line for line in lines) == 1


class TestHostInterface:

    def test_framebuffer_is_a_copy(self, chip8):
        framebuffer = chip8.get_framebuffer()
        assert framebuffer.shape == (64, 32)
        assert framebuffer.dtype == np.bool_
        framebuffer[0, 0] = True
        assert not chip8.get_framebuffer()[0, 0]

    def test_draw_shows_in_framebuffer(self, chip8):
        chip8.load_program(program(0x6000, 0xF029, 0xD005))  # Glyph "0" at (0, 0)
        for _ in range(3):
            chip8.step(0.0)
        framebuffer = chip8.get_framebuffer()
        assert framebuffer[:4, 0].all()
        assert not framebuffer[4, 0]

    def test_sound_active_while_timer_runs(self, chip8):
        chip8.load_program(program(0x6002, 0xF018, 0x1204))
        chip8.step(0.0)
        chip8.step(0.0)
        assert chip8.is_sound_active()
        chip8.step(1 / 60)
        assert chip8.is_sound_active()
        chip8.step(1.0)
        assert not chip8.is_sound_active()

    @pytest.mark.parametrize("index", [-1, 16, 100])
    def test_invalid_key_index(self, chip8, index):
        with pytest.raises(ValueError):
            chip8.set_key_state(index, True)

    def test_key_state_reaches_skip_instruction(self, chip8):
        chip8.load_program(program(0x6005, 0xE09E, 0x6101, 0x6202))
        chip8.set_key_state(5, True)
        for _ in range(3):
            chip8.step(0.0)
        assert chip8.registers[1] == 0
        assert chip8.registers[2] == 2

    def test_tap_between_steps_satisfies_key_wait(self, chip8):
        chip8.load_program(program(0xF40A))
        chip8.step(0.0)
        assert chip8.awaiting_key

        chip8.set_key_state(9, True)
        chip8.set_key_state(9, False)
        chip8.step(0.0)

        assert not chip8.awaiting_key
        assert chip8.registers[4] == 9

    def test_run_many_steps(self, chip8):
        chip8.load_program(program(0x7001, 0x1200))
        assert chip8.run(20, 0.0) is StepOutcome.OK
        assert chip8.registers[0] == 10

    def test_run_presses_tap_for_one_step_only(self, chip8):
        # Skip to the increment only while key 1 is down, otherwise spin.
        chip8.load_program(program(0xE19E, 0x1200, 0x7001, 0x1200))
        chip8.set_key_state(1, True)
        chip8.set_key_state(1, False)

        assert chip8.run(9, 0.0) is StepOutcome.OK

        assert chip8.registers[0] == 1
        assert not chip8.state.keypad.any()

    def test_run_holds_key_that_stays_down(self, chip8):
        chip8.load_program(program(0xE19E, 0x1200, 0x7001, 0x1200))
        chip8.set_key_state(1, True)

        chip8.run(9, 0.0)

        assert chip8.registers[0] == 3
