"""CHIP-8 interpreter package."""

from chix8.constants import *
from chix8.state import EmulatorState, StackState, create_state
from chix8.decode import DecodedInstruction, decode
from chix8.emulator import (
    execute, fetch, step, run_steps, tick_timers, load_program, load_rom, RomTooLargeError
)
from chix8.interpreter import Chip8, StepOutcome
from chix8.rendering import chip8_display_to_rgb, create_color_scheme

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "fetch",
    "execute",
    "step",
    "run_steps",
    "tick_timers",
    "load_program",
    "load_rom",
    "RomTooLargeError",
    "DecodedInstruction",
    "decode",
    "Chip8",
    "StepOutcome",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "chip8_display_to_rgb",
    "create_color_scheme",
]
