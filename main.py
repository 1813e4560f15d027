import argparse
import logging
import random
import sys

import pygame

from audio import TonePlayer, ToneRecorder, init_mixer
from oscillator import WAVE_KINDS, make_oscillator
from settings import (
    ACTIVE_COLOR, BACKGROUND_COLOR, BAR_COLOR, BAR_GAP, BASE_FREQUENCY, ENABLE_SOUND,
    FPS, LABEL_COLOR, MIXER_BUFFER, PAUSE_BETWEEN_SORTS, RECT_WIDTH, SAMPLE_RATE,
    SCREEN_HEIGHT, SCREEN_WIDTH, VOLUME, WAVE_KIND, WAVE_TABLE_SIZE, WINDOW_TITLE,
)
from sorters import algorithm_keys, algorithm_name, get_generator, shuffled_heights

logger = logging.getLogger(__name__)

# ============================================================
# ======================= COLOR / DRAW =======================
# ============================================================

def bar_rects(arr, bar_width=RECT_WIDTH, screen_height=SCREEN_HEIGHT):
    """One bottom-aligned rect per value; the value is the bar height in pixels."""
    step = bar_width + BAR_GAP
    return [pygame.Rect(i * step, screen_height - h, bar_width, h) for i, h in enumerate(arr)]


def draw_bars(screen, arr, active_indices, label="", font=None, bar_width=RECT_WIDTH):
    screen.fill(BACKGROUND_COLOR)
    for i, r in enumerate(bar_rects(arr, bar_width, screen.get_height())):
        c = ACTIVE_COLOR if i in active_indices else BAR_COLOR
        pygame.draw.rect(screen, c, r)
    if label and font:
        screen.blit(font.render(label, True, LABEL_COLOR), (12, 10))
    pygame.display.flip()


def build_font(size=18):
    for name in ("consolas", "couriernew", "lucidaconsole"):
        try:
            return pygame.font.SysFont(name, size)
        except (pygame.error, OSError):
            pass
    return pygame.font.Font(None, size)

# ============================================================
# ========================= RUN LOOP =========================
# ============================================================

class Visualizer:
    """
    Drives the sorting generators: one redraw and one tone per step.

    Keys: ESC / Q quit, SPACE pause, N / RIGHT skip to the next sort,
    M toggle sound.
    """

    def __init__(self, screen, player, cfg, font=None, rng=None):
        self.screen = screen
        self.player = player
        self.cfg    = cfg
        self.font   = font
        self.rng    = rng or random.Random(cfg.get("seed"))
        self.clock  = pygame.time.Clock()
        self.paused = False
        self.skip   = False

    def _draw(self, arr, active, label):
        draw_bars(self.screen, arr, active, label, self.font, self.cfg["bar_width"])

    def finish(self):
        """Silence the player and flush any recording to disk."""
        self.player.stop()
        recorder = self.player.recorder
        if recorder is None:
            return
        if recorder.path is not None:
            recorder.close()
        elif self.cfg.get("record"):
            recorder.write(self.cfg["record"])
            recorder.chunks.clear()

    def _quit(self):
        self.finish()
        pygame.quit()
        sys.exit()

    def handle_events(self):
        for ev in pygame.event.get():
            if ev.type == pygame.QUIT:
                self._quit()
            if ev.type != pygame.KEYDOWN:
                continue
            if ev.key in (pygame.K_ESCAPE, pygame.K_q):
                self._quit()
            elif ev.key == pygame.K_SPACE:
                self.paused = not self.paused
                logger.debug("Paused: %s", self.paused)
            elif ev.key in (pygame.K_n, pygame.K_RIGHT):
                self.skip = True
            elif ev.key == pygame.K_m:
                logger.info("Sound %s", "on" if self.player.toggle() else "off")

    def _wait_while_paused(self, arr, active, label):
        while self.paused and not self.skip:
            self._draw(arr, active, label + "  [PAUSED]")
            self.clock.tick(30)
            self.handle_events()

    def wait(self, seconds):
        """Hold the current frame for `seconds` while still answering events."""
        end = pygame.time.get_ticks() + int(seconds * 1000)
        while pygame.time.get_ticks() < end and not self.skip:
            self.handle_events()
            self.clock.tick(60)

    def run_sort(self, name, key, arr):
        """Animate one sort of `arr` in place. Returns the number of steps shown."""
        gen   = get_generator(key, arr)
        steps = 0
        logger.info("Starting %s on %d bars", name, len(arr))

        for state, active in gen:
            self.handle_events()
            if self.paused:
                self._wait_while_paused(state, active, name)
            if self.skip:
                break
            self._draw(state, active, name)
            self.player.play(state[active[-1]])
            self.clock.tick(self.cfg["fps"])
            steps += 1

        if self.skip:
            logger.info("Skipped %s after %d steps", name, steps)
            self.skip = False
            return steps

        logger.info("Finished %s in %d steps", name, steps)
        self._draw(arr, [], name + "  [SORTED]")
        self.wait(self.cfg["pause"])
        self.skip = False
        return steps

    def run(self, rounds=0):
        """Shuffle and sort with each selected algorithm; rounds=0 repeats forever."""
        done = 0
        while not rounds or done < rounds:
            for key in self.cfg["sorts"]:
                arr = shuffled_heights(self.rng, self.cfg["bar_width"], SCREEN_HEIGHT)
                self.run_sort(algorithm_name(key), key, arr)
            done += 1

# ============================================================
# ============================ CLI ===========================
# ============================================================

def _positive_int(text):
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {text}")
    return value


def _non_negative_int(text):
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {text}")
    return value


def _volume(text):
    value = float(text)
    if not 0.0 <= value <= 1.0:
        raise argparse.ArgumentTypeError(f"volume must be between 0 and 1, got {text}")
    return value


def _bar_width(text):
    value = int(text)
    if not RECT_WIDTH <= value <= SCREEN_HEIGHT // 2:
        raise argparse.ArgumentTypeError(
            f"bar width must be between {RECT_WIDTH} and {SCREEN_HEIGHT // 2}, got {text}")
    return value


def build_parser():
    p = argparse.ArgumentParser(
        prog="sortsynth",
        description="Animate sorting algorithms as bars with a tone per step.",
    )
    p.add_argument("--sorts", nargs="+", choices=algorithm_keys(), default=algorithm_keys(),
                   help="algorithms to cycle through, in order")
    p.add_argument("--rounds", type=_non_negative_int, default=0,
                   help="how many times to run the cycle (0 = forever)")
    p.add_argument("--fps", type=_positive_int, default=FPS,
                   help="animation steps per second; each tone lasts one step")
    p.add_argument("--bar-width", type=_bar_width, default=RECT_WIDTH,
                   help="bar width in pixels; fewer, wider bars sort faster")
    p.add_argument("--volume", type=_volume, default=VOLUME)
    p.add_argument("--wave", choices=WAVE_KINDS, default=WAVE_KIND)
    p.add_argument("--seed", type=int, default=None, help="seed for the shuffles")
    p.add_argument("--mute", action="store_true", help="start with sound off")
    p.add_argument("--record", metavar="PATH", default=None,
                   help="stream every tone played to a WAV file, finalised on exit")
    p.add_argument("--log-level", default="INFO",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p


def parse_args(argv=None):
    return build_parser().parse_args(argv)


def build_config(args):
    return dict(
        sorts=list(args.sorts),
        rounds=args.rounds,
        fps=args.fps,
        tone_duration=1.0 / args.fps,
        bar_width=args.bar_width,
        volume=args.volume,
        wave=args.wave,
        seed=args.seed,
        sound=ENABLE_SOUND and not args.mute,
        record=args.record,
        pause=PAUSE_BETWEEN_SORTS,
        log_level=args.log_level,
    )

# ============================================================
# ========================= MAIN =============================
# ============================================================

def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s - %(levelname)s - %(message)s")
    cfg = build_config(args)

    mixer_format = init_mixer(SAMPLE_RATE, MIXER_BUFFER)
    pygame.init()
    screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
    pygame.display.set_caption(WINDOW_TITLE)

    rate     = mixer_format[0] if mixer_format else SAMPLE_RATE
    osc      = make_oscillator(rate, cfg["tone_duration"], cfg["wave"],
                               WAVE_TABLE_SIZE, BASE_FREQUENCY)
    recorder = ToneRecorder(rate, cfg["record"]) if cfg["record"] else None
    player   = TonePlayer(osc, cfg["volume"], mixer_format, recorder)
    player.enabled = cfg["sound"]

    vis = Visualizer(screen, player, cfg, font=build_font())
    vis.run(cfg["rounds"])
    vis.finish()
    pygame.quit()


if __name__ == "__main__":
    main()
