import os

# Headless SDL so the run loop can open a window and a mixer in CI.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame
import pytest

import main as main_module
from settings import SCREEN_HEIGHT, SCREEN_WIDTH


@pytest.fixture
def screen():
    """A dummy-driver window; torn down after each test."""
    pygame.init()
    surface = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
    pygame.event.clear()
    yield surface
    pygame.quit()


@pytest.fixture
def fast_cfg():
    """Run config with six wide bars, 1 ms tones and no pause between sorts."""
    args = main_module.parse_args(["--fps", "1000", "--bar-width", "100", "--seed", "7"])
    cfg = main_module.build_config(args)
    cfg["pause"] = 0
    return cfg
