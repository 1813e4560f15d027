import math

import numpy as np

# ============================================================
#
# HOW THE WAVETABLE OSCILLATOR WORKS
# ==================================
#
# One cycle of the waveform is stored in a small table (64 points).
# A fractional read index walks through the table:
#   index_increment = freq * table_size / sample_rate
#   sample[t] = lerp(table, index[t]) * envelope[t]
#   index[t+1] = (index[t] + index_increment) mod table_size
#
# LERP — the two neighbouring table points are blended by the fractional
#   part of the index, wrapping the last point back onto the first:
#   lerp = (1 - w) * table[i] + w * table[(i + 1) % size]
#
# ENVELOPE — linear fade-in / hold / linear fade-out over one tone:
#   fade_in  = total / 3,  fade_out = total / 2
#   t <  fade_in              : env = t / fade_in
#   t >= total - fade_out     : env = 1 - (t - (total - fade_out)) / fade_out
#   otherwise                 : env = 1
#   The release keeps descending past total, so the gain is clamped to
#   [0, 1] before it multiplies the sample.

WAVE_KINDS = ("sine", "square", "saw", "triangle")


def make_wave_table(kind="sine", size=64) -> np.ndarray:
    """Return one cycle of ``kind`` sampled at ``size`` evenly spaced points."""
    if size < 2:
        raise ValueError(f"wave table needs at least 2 points, got {size}")
    x = np.arange(size, dtype=np.float64) / size
    if kind == "sine":
        return np.sin(2.0 * math.pi * x)
    if kind == "square":
        return np.where(x < 0.5, 1.0, -1.0)
    if kind == "saw":
        return 2.0 * x - 1.0
    if kind == "triangle":
        return 2.0 * np.abs(2.0 * x - 1.0) - 1.0
    raise ValueError(f"Unknown wave kind: {kind}")


class WavetableOscillator:
    """
    Table-lookup oscillator with a fade-in / fade-out envelope.

    Attributes
    ----------
    sample_rate       : int    — output rate in Hz
    wave_table        : array  — one cycle of the waveform
    index             : float  — read position in [0, table size)
    index_increment   : float  — table points advanced per sample
    total_duration    : float  — tone length in seconds
    fade_in_duration  : float  — total_duration / 3
    fade_out_duration : float  — total_duration / 2
    elapsed_time      : float  — seconds rendered since the last reset

    The oscillator is an endless iterator of float samples; ``render``
    produces the same samples as a numpy block.
    """

    def __init__(self, sample_rate, total_duration, wave_table):
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        if total_duration <= 0:
            raise ValueError(f"total_duration must be positive, got {total_duration}")
        table = np.asarray(wave_table, dtype=np.float64)
        if table.ndim != 1 or len(table) < 2:
            raise ValueError("wave_table must be a flat sequence of at least 2 points")

        self.sample_rate       = sample_rate
        self.wave_table        = table
        self.index             = 0.0
        self.index_increment   = 0.0
        self.total_duration    = float(total_duration)
        self.fade_in_duration  = self.total_duration / 3.0
        self.fade_out_duration = self.total_duration / 2.0
        self.elapsed_time      = 0.0

    @property
    def table_size(self):
        return len(self.wave_table)

    @property
    def frequency(self):
        return self.index_increment * self.sample_rate / self.table_size

    def set_frequency(self, frequency: float):
        self.index_increment = frequency * self.table_size / self.sample_rate

    def reset(self):
        """Rewind to the start of a tone. The frequency is kept."""
        self.index = 0.0
        self.elapsed_time = 0.0

    def lerp(self) -> float:
        truncated = int(self.index) % self.table_size
        nxt = (truncated + 1) % self.table_size
        w = self.index - int(self.index)
        return (1.0 - w) * self.wave_table[truncated] + w * self.wave_table[nxt]

    def _envelope_at(self, t):
        fade_out_start = self.total_duration - self.fade_out_duration
        if t < self.fade_in_duration:
            return t / self.fade_in_duration
        if t >= fade_out_start:
            return 1.0 - (t - fade_out_start) / self.fade_out_duration
        return 1.0

    def amplitude(self) -> float:
        """Envelope gain at the current time, then advance one sample period."""
        value = self._envelope_at(self.elapsed_time)
        self.elapsed_time += 1.0 / self.sample_rate
        return value

    def next_sample(self) -> float:
        gain = min(1.0, max(0.0, self.amplitude()))
        sample = self.lerp() * gain
        self.index = (self.index + self.index_increment) % self.table_size
        return float(sample)

    def __iter__(self):
        return self

    def __next__(self):
        return self.next_sample()

    def render(self, n_samples) -> np.ndarray:
        """
        Vectorised equivalent of ``n_samples`` calls to ``next_sample``.

        Step-by-step:
          1. Per-sample read index and elapsed time from the current state
          2. Lerp between neighbouring table points
          3. Piecewise envelope, clamped to [0, 1]
          4. Advance index / elapsed_time past the block
        """
        n_samples = int(n_samples)
        if n_samples <= 0:
            return np.zeros(0, dtype=np.float64)
        k = np.arange(n_samples, dtype=np.float64)
        size = self.table_size

        # ---- WAVEFORM ----
        idx = (self.index + k * self.index_increment) % size
        truncated = idx.astype(np.int64) % size
        w = idx - np.floor(idx)
        wave = (1.0 - w) * self.wave_table[truncated] \
            + w * self.wave_table[(truncated + 1) % size]

        # ---- ENVELOPE ----
        t = self.elapsed_time + k / self.sample_rate
        fade_out_start = self.total_duration - self.fade_out_duration
        env = np.ones(n_samples, dtype=np.float64)
        r_mask = t >= fade_out_start
        env[r_mask] = 1.0 - (t[r_mask] - fade_out_start) / self.fade_out_duration
        a_mask = t < self.fade_in_duration
        env[a_mask] = t[a_mask] / self.fade_in_duration
        np.clip(env, 0.0, 1.0, out=env)

        self.index = (self.index + n_samples * self.index_increment) % size
        self.elapsed_time += n_samples / self.sample_rate
        return wave * env

    def tone_length(self):
        return int(round(self.total_duration * self.sample_rate))

    def render_tone(self) -> np.ndarray:
        """One complete enveloped tone at the current frequency."""
        self.reset()
        return self.render(self.tone_length())


def make_oscillator(sample_rate, total_duration, kind="sine", table_size=64,
                    frequency=440.0):
    osc = WavetableOscillator(sample_rate, total_duration,
                              make_wave_table(kind, table_size))
    osc.set_frequency(frequency)
    return osc
