# ============================================================
# ===================== USER SETTINGS ========================
# ============================================================

WINDOW_TITLE  = "SortSynth"
SCREEN_WIDTH  = 800
SCREEN_HEIGHT = 600
FACTOR        = 1
RECT_WIDTH    = 6 * FACTOR
BAR_GAP       = 2 * FACTOR
FPS           = 20

BACKGROUND_COLOR = (0, 0, 0)
BAR_COLOR        = (255, 255, 255)
ACTIVE_COLOR     = (255, 0, 0)
LABEL_COLOR      = (140, 140, 160)

# Seconds the finished array stays on screen before the next shuffle.
PAUSE_BETWEEN_SORTS = 1.0

# ============================================================
# ====================== SOUND SETTINGS ======================
# ============================================================
#
# SAMPLE_RATE — oscillator rate in Hz. 24 kHz is plenty for tones that
#   top out around 1 kHz.
SAMPLE_RATE = 48000 // 2
#
# WAVE_TABLE_SIZE — points in one stored cycle. The oscillator linearly
#   interpolates between neighbours, so 64 points is clean for a sine.
WAVE_TABLE_SIZE = 64
WAVE_KIND       = "sine"
#
# BASE_FREQUENCY — pitch of a zero-height bar. A bar of height h plays
#   BASE_FREQUENCY + h Hz, so 440..1040 Hz with the default window.
BASE_FREQUENCY = 440.0
#
# Each tone lasts one animation step (1 / FPS seconds).
#   Envelope: linear fade-in over the first third, full level until the
#   halfway point, linear fade-out over the second half.
#
# VOLUME — channel volume for every tone, 0.0 to 1.0.
VOLUME = 0.1
#
# MIXER_BUFFER — pygame mixer buffer in samples. Smaller = lower latency.
MIXER_BUFFER = 512
ENABLE_SOUND = True
