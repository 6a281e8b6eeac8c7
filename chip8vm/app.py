import argparse
import sys

import os
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "no welcome message"   # this env var disable pygame's welcome message when imported
import pygame
from pygame.locals import (
    K_0, K_1, K_2, K_3,
    K_4, K_5, K_6, K_7,
    K_8, K_9, K_a, K_b,
    K_c, K_d, K_e, K_f,
)

from .config import BLUE, DEFAULT_IPS, FPS, IPS_STEP, LIGHT_BLUE, SCALE, SCREEN_HEIGHT, SCREEN_WIDTH
from .cpu import Chip8, RunState
from .errors import Chip8Error
from .scheduler import Scheduler


KEY_MAPPINGS = {
    K_0: 0x0,
    K_1: 0x1,
    K_2: 0x2,
    K_3: 0x3,
    K_4: 0x4,
    K_5: 0x5,
    K_6: 0x6,
    K_7: 0x7,
    K_8: 0x8,
    K_9: 0x9,
    K_a: 0xA,
    K_b: 0xB,
    K_c: 0xC,
    K_d: 0xD,
    K_e: 0xE,
    K_f: 0xF,
}


def get_args(argv=None):
    parser = argparse.ArgumentParser(prog="chip8vm")
    parser.add_argument("-f", "--file", required=True, help="input rom file")
    parser.add_argument("--ips", type=int, default=DEFAULT_IPS, help="instructions executed per second")
    parser.add_argument("--scale", type=int, default=SCALE, help="size in window pixels of a CHIP-8 pixel")
    args = parser.parse_args(argv)
    if args.ips <= 0:
        parser.error("--ips must be a positive number")
    if args.scale <= 0:
        parser.error("--scale must be a positive number")
    return args


# ******************** I/O SECTION
class Screen:
    """frame sink: paints the interpreter's 0/1 display rows onto a scaled pygame window"""
    def __init__(self, w=SCREEN_WIDTH, h=SCREEN_HEIGHT, s=SCALE, bg_color=BLUE, fg_color=LIGHT_BLUE):
        self.w, self.h, self.scale = w, h, s
        self.background = pygame.Color(*bg_color)
        self.foreground = pygame.Color(*fg_color)
        self.surface = pygame.display.set_mode((w * self.scale, h * self.scale))
        self.surface.fill(self.background)

    def render(self, rows):
        self.surface.fill(self.background)
        for y, row in enumerate(rows):
            for x, pixel in enumerate(row):
                if pixel:
                    pygame.draw.rect(
                        self.surface,
                        self.foreground,
                        (x * self.scale, y * self.scale, self.scale, self.scale)
                    )
        pygame.display.flip()


def show_speed(rom_name, scheduler):
    pygame.display.set_caption(f"{rom_name} | {scheduler.ips} ips")


def change_speed(scheduler, step):
    """move the instructions per second by step, never going below IPS_STEP"""
    scheduler.ips = max(IPS_STEP, scheduler.ips + step)


def handle_events(chip, scheduler, rom_name="chip8vm"):
    """
    forward keyboard events to the interpreter, return False when the user asked to quit
    arrow up/down speed the interpreter up or down while it runs
    """
    for event in pygame.event.get():
        if event.type == pygame.QUIT:
            return False
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                return False
            if event.key in KEY_MAPPINGS:
                chip.key_down(KEY_MAPPINGS[event.key])
            elif event.key in (pygame.K_UP, pygame.K_DOWN):
                change_speed(scheduler, IPS_STEP if event.key == pygame.K_UP else -IPS_STEP)
                show_speed(rom_name, scheduler)
        elif event.type == pygame.KEYUP and event.key in KEY_MAPPINGS:
            chip.key_up(KEY_MAPPINGS[event.key])
    return True


# ******************** ENTRY POINT SECTION
def main(argv=None):
    args = get_args(argv)
    chip = Chip8()
    try:
        chip.mem.load_rom(args.file)
    except (OSError, Chip8Error) as err:
        sys.exit(f"Cannot load ROM {args.file}: {err}")
    # pygame initialization
    pygame.init()
    rom_name = os.path.basename(args.file)
    clock = pygame.time.Clock()
    screen = Screen(s=args.scale)
    scheduler = Scheduler(args.ips)
    show_speed(rom_name, scheduler)
    # emulation loop
    run = True
    try:
        while run:
            elapsed = clock.tick(FPS)
            run = handle_events(chip, scheduler, rom_name)
            cycles, ticks = scheduler.advance(elapsed)
            for _ in range(ticks):
                chip.tick()
            redraw = False
            for _ in range(cycles):
                chip.cycle()        # emulate one machine cycle (fetch opcode, decode opcode, execute opcode)
                redraw = redraw or chip.draw
                if chip.state is not RunState.RUNNING:
                    break
            if redraw:
                screen.render(chip.frame())
            if chip.halted:
                sys.exit(f"********** THE EMULATOR CRASHED WITH THE FOLLOWING STATE\n{chip}")
    finally:
        pygame.quit()


if __name__ == "__main__":
    main()
