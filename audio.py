import logging
import wave

import numpy as np
import pygame

from settings import BASE_FREQUENCY, ENABLE_SOUND, MIXER_BUFFER, SAMPLE_RATE, VOLUME

logger = logging.getLogger(__name__)

# pygame mixer format code -> (numpy dtype, scale, offset)
_PCM_FORMATS = {
    -16: (np.int16,   32767.0, 0.0),
    16:  (np.uint16,  32767.0, 32768.0),
    -8:  (np.int8,    127.0,   0.0),
    8:   (np.uint8,   127.0,   128.0),
    32:  (np.float32, 1.0,     0.0),
}

# ============================================================
# ======================= MIXER SETUP ========================
# ============================================================

def init_mixer(sample_rate=SAMPLE_RATE, buffer=MIXER_BUFFER):
    """
    Open the audio device. Call before pygame.init() so the requested
    rate sticks. Returns pygame.mixer.get_init() -> (freq, format, channels),
    or None when there is no usable device.
    """
    try:
        pygame.mixer.pre_init(sample_rate, -16, 2, buffer)
        pygame.mixer.init()
    except pygame.error as e:
        logger.warning("Audio unavailable, running silent: %s", e)
        return None
    fmt = pygame.mixer.get_init()
    logger.debug("Mixer opened: %s", fmt)
    return fmt

def to_pcm(samples, fmt=-16, channels=2) -> np.ndarray:
    """Float samples in [-1, 1] -> contiguous PCM array shaped for sndarray."""
    if fmt not in _PCM_FORMATS:
        raise ValueError(f"Unsupported mixer format: {fmt}")
    dtype, scale, offset = _PCM_FORMATS[fmt]
    pcm = (np.clip(samples, -1.0, 1.0) * scale + offset).astype(dtype)
    if channels > 1:
        pcm = np.column_stack([pcm] * channels)
    return np.ascontiguousarray(pcm)

# ============================================================
# ======================= TONE PLAYER ========================
# ============================================================

class TonePlayer:
    """
    Plays one enveloped oscillator tone per animation step.

    A bar of height h sounds at base_frequency + h. Rendered tones are
    cached per frequency since the same heights come back every sort.
    Each new tone cuts off the previous one on the player's channel.
    """

    def __init__(self, oscillator, volume=VOLUME, mixer_format=None,
                 recorder=None, base_frequency=BASE_FREQUENCY):
        self.oscillator     = oscillator
        self.volume         = volume
        self.mixer_format   = mixer_format
        self.recorder       = recorder
        self.base_frequency = base_frequency
        self.enabled        = ENABLE_SOUND
        self._tones         = {}        # freq -> float samples
        self._sounds        = {}        # freq -> pygame.mixer.Sound
        self._channel       = pygame.mixer.Channel(0) if mixer_format else None

    @property
    def available(self):
        return self._channel is not None

    def frequency_for(self, height):
        return self.base_frequency + height

    def tone_for(self, height) -> np.ndarray:
        freq = self.frequency_for(height)
        if freq not in self._tones:
            self.oscillator.set_frequency(freq)
            self._tones[freq] = self.oscillator.render_tone()
        return self._tones[freq]

    def _sound_for(self, height):
        freq = self.frequency_for(height)
        if freq not in self._sounds:
            _, fmt, channels = self.mixer_format
            snd = pygame.sndarray.make_sound(to_pcm(self.tone_for(height), fmt, channels))
            snd.set_volume(self.volume)
            self._sounds[freq] = snd
        return self._sounds[freq]

    def play(self, height):
        if self.recorder is not None:
            if self.enabled:
                self.recorder.add(self.tone_for(height))
            else:
                self.recorder.add_silence(self.oscillator.total_duration)
        if self.enabled and self.available:
            self._channel.play(self._sound_for(height))

    def toggle(self):
        self.enabled = not self.enabled
        if not self.enabled and self.available:
            self._channel.stop()
        return self.enabled

    def stop(self):
        if self.available:
            self._channel.stop()

# ============================================================
# ======================== RECORDING =========================
# ============================================================

class ToneRecorder:
    """
    Collects every played tone back to back as a WAV.

    Without a path, tones are kept in memory until ``write(path)``, which
    peak-normalises the mix. With a path, each tone is clipped and
    appended to an open WAV file as it arrives, so endless runs keep a
    flat memory footprint; ``close()`` finalises the file.
    """

    def __init__(self, sample_rate=SAMPLE_RATE, path=None):
        self.sample_rate = sample_rate
        self.path = path
        self.chunks = []
        self._wav = None
        self._streamed = 0

    @property
    def n_samples(self):
        return self._streamed + sum(len(c) for c in self.chunks)

    @property
    def duration(self):
        return self.n_samples / self.sample_rate

    def _open(self, path):
        wf = wave.open(str(path), "wb")
        wf.setnchannels(2)
        wf.setsampwidth(2)
        wf.setframerate(self.sample_rate)
        return wf

    def add(self, samples):
        samples = np.asarray(samples, dtype=np.float32)
        if self.path is None:
            self.chunks.append(samples.copy())
            return
        if self._wav is None:
            self._wav = self._open(self.path)
        self._wav.writeframes(to_pcm(samples, -16, 2).tobytes())
        self._streamed += len(samples)

    def add_silence(self, seconds):
        self.add(np.zeros(int(round(seconds * self.sample_rate)), dtype=np.float32))

    def close(self):
        """Finalise a streamed recording. Returns its path, or None if nothing was written."""
        if self._wav is None:
            return None
        self._wav.close()
        self._wav = None
        logger.info("Wrote %.1f s of audio to %s", self.duration, self.path)
        return self.path

    def write(self, path):
        if not self.chunks:
            return None
        mix = np.concatenate(self.chunks)
        peak = float(np.max(np.abs(mix))) if len(mix) else 0.0
        if peak > 1.0:
            mix = mix / peak
        with self._open(path) as wf:
            wf.writeframes(to_pcm(mix, -16, 2).tobytes())
        logger.info("Wrote %.1f s of audio to %s", self.duration, path)
        return path
