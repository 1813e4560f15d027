import wave

import numpy as np
import pygame
import pytest

import audio
from audio import TonePlayer, ToneRecorder, init_mixer, to_pcm
from oscillator import make_oscillator


@pytest.fixture
def osc():
    return make_oscillator(24000, 0.05)


class TestPcm:
    def test_stereo_int16(self):
        pcm = to_pcm(np.array([0.0, 0.5, -1.0, 2.0]), -16, 2)
        assert pcm.dtype == np.int16
        assert pcm.shape == (4, 2)
        assert list(pcm[:, 0]) == [0, 16383, -32767, 32767]
        assert np.array_equal(pcm[:, 0], pcm[:, 1])
        assert pcm.flags["C_CONTIGUOUS"]

    def test_mono(self):
        assert to_pcm(np.zeros(10), -16, 1).shape == (10,)

    def test_unsigned_offset(self):
        pcm = to_pcm(np.array([0.0]), 8, 1)
        assert pcm.dtype == np.uint8
        assert pcm[0] == 128

    def test_unsupported_format(self):
        with pytest.raises(ValueError):
            to_pcm(np.zeros(4), 24, 2)


class TestRecorder:
    def test_nothing_recorded(self, tmp_path):
        assert ToneRecorder(24000).write(tmp_path / "empty.wav") is None
        assert not (tmp_path / "empty.wav").exists()

    def test_writes_stereo_wav(self, tmp_path, osc):
        rec = ToneRecorder(24000)
        rec.add(osc.render_tone())
        rec.add_silence(0.05)
        assert rec.n_samples == 2400
        assert rec.duration == pytest.approx(0.1)

        path = rec.write(tmp_path / "out.wav")
        with wave.open(str(path), "rb") as wf:
            assert wf.getnchannels() == 2
            assert wf.getsampwidth() == 2
            assert wf.getframerate() == 24000
            assert wf.getnframes() == 2400

    def test_peak_normalised(self, tmp_path):
        rec = ToneRecorder(8000)
        rec.add(np.array([0.0, 2.0, -1.0]))
        path = rec.write(tmp_path / "loud.wav")
        with wave.open(str(path), "rb") as wf:
            frames = np.frombuffer(wf.readframes(3), dtype=np.int16).reshape(-1, 2)
        assert list(frames[:, 0]) == [0, 32767, -16383]

    def test_streams_to_open_file(self, tmp_path, osc):
        path = tmp_path / "stream.wav"
        rec = ToneRecorder(24000, path)
        tone = osc.render_tone()
        for _ in range(3):
            rec.add(tone)
        rec.add_silence(0.05)
        assert rec.chunks == []
        assert rec.n_samples == 4800

        assert rec.close() == path
        with wave.open(str(path), "rb") as wf:
            assert wf.getnchannels() == 2
            assert wf.getframerate() == 24000
            assert wf.getnframes() == 4800
        assert rec.close() is None

    def test_streamed_samples_are_clipped(self, tmp_path):
        path = tmp_path / "clip.wav"
        rec = ToneRecorder(8000, path)
        rec.add(np.array([0.5, 2.0, -3.0]))
        rec.close()
        with wave.open(str(path), "rb") as wf:
            frames = np.frombuffer(wf.readframes(3), dtype=np.int16).reshape(-1, 2)
        assert list(frames[:, 0]) == [16383, 32767, -32767]

    def test_stream_without_tones_writes_nothing(self, tmp_path):
        path = tmp_path / "none.wav"
        assert ToneRecorder(24000, path).close() is None
        assert not path.exists()


class TestTonePlayer:
    def test_pitch_follows_height(self, osc):
        player = TonePlayer(osc)
        assert player.frequency_for(6) == 446.0
        assert player.frequency_for(600) == 1040.0

    def test_tones_are_cached(self, osc):
        player = TonePlayer(osc)
        first = player.tone_for(120)
        assert player.tone_for(120) is first
        assert len(first) == osc.tone_length()
        assert osc.frequency == pytest.approx(560.0)

    def test_without_device(self, osc):
        player = TonePlayer(osc)
        assert not player.available
        player.play(60)
        player.stop()

    def test_records_each_tone(self, osc):
        rec = ToneRecorder(24000)
        player = TonePlayer(osc, recorder=rec)
        player.play(6)
        player.play(600)
        assert len(rec.chunks) == 2
        np.testing.assert_array_equal(rec.chunks[1], player.tone_for(600).astype(np.float32))

    def test_muted_steps_record_silence(self, osc):
        rec = ToneRecorder(24000)
        player = TonePlayer(osc, recorder=rec)
        assert player.toggle() is False
        player.play(300)
        assert len(rec.chunks[0]) == osc.tone_length()
        assert not np.any(rec.chunks[0])
        assert player.toggle() is True


class TestMixer:
    def test_failure_degrades_to_silence(self, monkeypatch):
        def boom(*args, **kwargs):
            raise pygame.error("no audio device")
        monkeypatch.setattr(audio.pygame.mixer, "pre_init", lambda *a, **k: None)
        monkeypatch.setattr(audio.pygame.mixer, "init", boom)
        assert init_mixer() is None

    def test_plays_on_dummy_device(self, osc):
        fmt = init_mixer(24000, 512)
        if fmt is None:
            pytest.skip("no mixer available")
        try:
            rate, _, _ = fmt
            tone_osc = make_oscillator(rate, 0.05)
            player = TonePlayer(tone_osc, volume=0.1, mixer_format=fmt)
            assert player.available
            player.play(300)
            snd = player._sounds[740.0]
            assert snd.get_volume() == pytest.approx(0.1, abs=0.01)
            player.stop()
        finally:
            pygame.mixer.quit()
