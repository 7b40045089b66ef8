"""
pygame host shell for the chix8 CHIP-8 interpreter
"""

import time

import hydra
import numpy as np
import pygame
from hydra.utils import to_absolute_path
from omegaconf import DictConfig

from chix8 import Chip8, SCREEN_WIDTH, SCREEN_HEIGHT
from chix8.logging import ConsoleLogger
from chix8.rendering import chip8_display_to_rgb, create_color_scheme

# COSMAC VIP hex keypad laid over the left-hand block of a QWERTY keyboard
KEY_MAP = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}


def draw_overlay_text(surface, text_lines, position, font, bg_color=(0, 0, 0), text_color=(255, 255, 255), alpha=120):
    """Draw text with semi-transparent background overlay"""
    if not text_lines:
        return

    line_height = font.get_height()
    max_width = max(font.size(line)[0] for line in text_lines)
    overlay = pygame.Surface((max_width + 16, len(text_lines) * line_height + 8))
    overlay.set_alpha(alpha)
    overlay.fill(bg_color)
    surface.blit(overlay, position)

    x, y = position
    for i, line in enumerate(text_lines):
        text_surface = font.render(line, True, text_color)
        surface.blit(text_surface, (x + 8, y + 4 + i * line_height))


def framebuffer_to_text(framebuffer: np.ndarray) -> str:
    return "\n".join(
        "".join("#" if framebuffer[x, y] else "." for x in range(SCREEN_WIDTH))
        for y in range(SCREEN_HEIGHT)
    )


def run_headless(chip8: Chip8, cfg: DictConfig, logger: ConsoleLogger):
    steps = cfg.headless_frames * cfg.instructions_per_frame
    outcome = chip8.run(steps, 1.0 / (cfg.fps * cfg.instructions_per_frame), progress=True)
    logger.info(f"Finished {steps} steps with outcome {outcome.name}")
    print(framebuffer_to_text(chip8.get_framebuffer()))


def run_window(chip8: Chip8, cfg: DictConfig, logger: ConsoleLogger):
    """Main loop: poll input, step the interpreter, draw the framebuffer."""
    scale = cfg.scale
    on_color, off_color = create_color_scheme(cfg.color_scheme)
    ipf = cfg.instructions_per_frame

    pygame.init()
    screen = pygame.display.set_mode((SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale))
    pygame.display.set_caption("chix8")
    clock = pygame.time.Clock()
    font = pygame.font.Font(None, 18)

    running = True
    paused = False
    show_debug = cfg.show_debug
    last_frame = time.perf_counter()

    logger.info("Controls: ESC=Quit, F1=Pause, F2=Reset, F3=Debug")

    while running:
        clock.tick(cfg.fps)
        now = time.perf_counter()
        elapsed, last_frame = now - last_frame, now

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_F1:
                    paused = not paused
                elif event.key == pygame.K_F2:
                    chip8.initialize()
                    chip8.load_program(chip8_rom(cfg))
                    logger.info("Reset")
                elif event.key == pygame.K_F3:
                    show_debug = not show_debug
                elif event.key in KEY_MAP:
                    chip8.set_key_state(KEY_MAP[event.key], True)
            elif event.type == pygame.KEYUP:
                if event.key in KEY_MAP:
                    chip8.set_key_state(KEY_MAP[event.key], False)

        if not paused and not chip8.halted:
            for _ in range(ipf):
                if chip8.step(elapsed / ipf).is_fatal:
                    break

        rgb = chip8_display_to_rgb(chip8.get_framebuffer(), scale, on_color, off_color)
        pygame.surfarray.blit_array(screen, rgb.swapaxes(0, 1))

        if show_debug:
            registers = chip8.registers
            debug_lines = [
                f"PC: 0x{chip8.pc:03X}  I: 0x{int(chip8.state.I):03X}",
                " ".join(f"{int(v):02X}" for v in registers[:8]),
                " ".join(f"{int(v):02X}" for v in registers[8:]),
                f"Sound: {'on' if chip8.is_sound_active() else 'off'}"
                + ("  WAITING FOR KEY" if chip8.awaiting_key else ""),
            ]
            draw_overlay_text(screen, debug_lines, (5, 5), font, alpha=100)
        if paused or chip8.halted:
            draw_overlay_text(screen, ["HALTED" if chip8.halted else "PAUSED"],
                              (5, SCREEN_HEIGHT * scale - 30), font, text_color=(255, 255, 0))

        pygame.display.flip()

    pygame.quit()


def chip8_rom(cfg: DictConfig) -> bytes:
    with open(to_absolute_path(cfg.rom), "rb") as f:
        return f.read()


@hydra.main(version_base=None, config_path="conf", config_name="config")
def main(cfg: DictConfig) -> None:
    logger = ConsoleLogger("chix8", log_level=cfg.log_level)
    chip8 = Chip8(seed=cfg.seed, logger=ConsoleLogger("Chip8", log_level=cfg.log_level))

    if not chip8.load_program(chip8_rom(cfg)):
        return

    if cfg.headless_frames > 0:
        run_headless(chip8, cfg, logger)
    else:
        run_window(chip8, cfg, logger)


if __name__ == "__main__":
    main()
