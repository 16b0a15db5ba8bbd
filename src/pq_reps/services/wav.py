"""
WAV helpers -- just enough RIFF handling to splice PCM segments and silences.

Only uncompressed PCM (format tag 1) is accepted. Every chunk other than
"fmt " and "data" is skipped.
"""

import struct
from dataclasses import dataclass

PCM_FORMAT_TAG = 1
WAV_HEADER_SIZE = 44
# RIFF/data size used when the final length is unknown (streamed output).
STREAMING_DATA_SIZE = 0xFFFFFFFF - 36


class WavFormatError(ValueError):
    pass


@dataclass(frozen=True)
class WavFormat:
    sample_rate: int
    channels: int
    bits_per_sample: int

    @property
    def block_align(self) -> int:
        return self.channels * self.bits_per_sample // 8

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.block_align


@dataclass(frozen=True)
class WavAudio:
    format: WavFormat
    data: bytes


def parse_wav(audio: bytes) -> WavAudio:
    """Split a RIFF/WAVE byte string into its format and PCM payload."""
    if len(audio) < 12 or audio[0:4] != b"RIFF" or audio[8:12] != b"WAVE":
        raise WavFormatError("Unsupported WAV data received from TTS.")

    offset = 12
    fmt: WavFormat | None = None
    data: bytes | None = None

    while offset + 8 <= len(audio):
        chunk_id = audio[offset:offset + 4]
        (chunk_size,) = struct.unpack_from("<I", audio, offset + 4)
        start = offset + 8

        if chunk_id == b"fmt ":
            if chunk_size < 16 or start + 16 > len(audio):
                raise WavFormatError("Incomplete WAV data received from TTS.")
            format_tag, channels, sample_rate = struct.unpack_from("<HHI", audio, start)
            if format_tag != PCM_FORMAT_TAG:
                raise WavFormatError("Unsupported WAV format from TTS.")
            (bits_per_sample,) = struct.unpack_from("<H", audio, start + 14)
            fmt = WavFormat(sample_rate, channels, bits_per_sample)
        elif chunk_id == b"data":
            data = audio[start:start + chunk_size]

        offset = start + chunk_size + (chunk_size & 1)

    if fmt is None or data is None or not (fmt.sample_rate and fmt.channels and fmt.bits_per_sample):
        raise WavFormatError("Incomplete WAV data received from TTS.")

    return WavAudio(format=fmt, data=data)


def build_wav_header(fmt: WavFormat, data_size: int) -> bytes:
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        PCM_FORMAT_TAG,
        fmt.channels,
        fmt.sample_rate,
        fmt.byte_rate,
        fmt.block_align,
        fmt.bits_per_sample,
        b"data",
        data_size,
    )


def build_wav(fmt: WavFormat, data: bytes) -> bytes:
    return build_wav_header(fmt, len(data)) + data


def silence(seconds: float, fmt: WavFormat) -> bytes:
    """Zero-filled PCM lasting `seconds` in the given format."""
    samples = round(seconds * fmt.sample_rate)
    return bytes(samples * fmt.block_align)
