"""
Simple Talkscriber Client

Streams a WAV file to the speech-to-text service, or speaks text through the
text-to-speech service with real-time playback and optional WAV saving.

Usage:
    python -m talkscriber.client stt sample.wav [--language=en]
    python -m talkscriber.client tts "Hello there" [--speaker=tara] [--save=out.wav] [--no-playback]

The API key is read from --api-key or TALKSCRIBER_API_KEY.
"""

import argparse
import asyncio
from typing import List, Optional

from utils.logging_config import get_logger
from utils.config import ENV_VARS_DOCUMENTATION
from utils.metrics import get_metrics_collector
from talkscriber.engine.errors import StreamingError
from talkscriber.engine.stt import TranscriptionConfig, TranscriptionService
from talkscriber.engine.tts import SynthesisConfig, SpeechSynthesisService, DEFAULT_TEST_TEXT
from talkscriber.client.wav_source import load_wav, stream_samples, DEFAULT_CHUNK_SIZE

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Talkscriber streaming client",
        epilog=ENV_VARS_DOCUMENTATION,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--api-key", help="API key (default: $TALKSCRIBER_API_KEY)")
    parser.add_argument("--endpoint", help="WebSocket endpoint override")
    parser.add_argument("--timeout", type=float, default=5.0, help="Handshake timeout in seconds")
    parser.add_argument("--metrics", action="store_true", help="Print a performance summary on exit")
    commands = parser.add_subparsers(dest="command", required=True)

    stt = commands.add_parser("stt", help="Transcribe a mono WAV file")
    stt.add_argument("wav", help="Path to a mono audio file")
    stt.add_argument("--language", default="en", help="Spoken language (default: en)")
    stt.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE, help="Samples per upload")
    stt.add_argument("--turn-detection", action="store_true", help="Enable server-side turn detection")
    stt.add_argument("--linger", type=float, default=3.0,
                     help="Seconds to wait for trailing results after the file is sent")

    tts = commands.add_parser("tts", help="Speak a piece of text")
    tts.add_argument("text", nargs="?", default=DEFAULT_TEST_TEXT, help="Text to speak")
    tts.add_argument("--speaker", default="tara", help="Speaker voice (default: tara)")
    tts.add_argument("--save", help="Save the received audio to this WAV file")
    tts.add_argument("--no-playback", action="store_true", help="Do not play audio through the speakers")
    tts.add_argument("--min-buffer", type=int, default=20, help="Chunks buffered before playback starts")

    return parser.parse_args(argv)


async def run_transcription(args: argparse.Namespace) -> int:
    config = TranscriptionConfig.from_env(
        api_key=args.api_key,
        endpoint=args.endpoint,
        language=args.language,
        enable_turn_detection=args.turn_detection,
        handshake_timeout=args.timeout
    )
    service = TranscriptionService(
        config,
        on_transcription=lambda text: logger.info(f"📝 Transcription: \"{text}\""),
        on_utterance=lambda text: logger.debug(f"💬 Utterance: {text}"),
        on_error=lambda error: logger.error(f"❌ STT error: {error}")
    )

    try:
        samples, sample_rate = load_wav(args.wav)
        await service.connect()
        await stream_samples(service, samples, sample_rate, chunk_size=args.chunk_size)
        await asyncio.sleep(args.linger)
    except (StreamingError, OSError, RuntimeError) as e:
        # soundfile reports unreadable files as RuntimeError
        logger.error(f"❌ Failed to process audio: {e}")
        return 1
    finally:
        service.close()
    return 0


async def run_synthesis(args: argparse.Namespace) -> int:
    config = SynthesisConfig.from_env(
        api_key=args.api_key,
        endpoint=args.endpoint,
        speaker_name=args.speaker,
        enable_playback=not args.no_playback,
        save_audio_path=args.save,
        min_buffered_chunks=args.min_buffer,
        handshake_timeout=args.timeout
    )
    service = SpeechSynthesisService(
        config,
        on_audio_complete=lambda: logger.info("🎉 Audio generation finished"),
        on_error=lambda error: logger.error(f"❌ TTS error: {error}")
    )

    if not await service.synthesize(args.text):
        logger.error("TTS run failed")
        return 1

    info = service.audio_info()
    logger.info("Audio Information:")
    logger.info(f"- Chunks received: {info.chunks_count}")
    logger.info(f"- Total bytes: {info.total_bytes:,}")
    logger.info(f"- Duration: {info.duration_seconds:.2f} seconds")
    logger.info(f"- Sample rate: {info.sample_rate}Hz")
    logger.info(f"- Channels: {info.channels}")
    logger.info(f"- Bit depth: {info.bits_per_sample}-bit")
    return 0


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = parse_args(argv)

    if args.command == "stt":
        status = await run_transcription(args)
    else:
        status = await run_synthesis(args)

    if args.metrics:
        print(get_metrics_collector().get_summary_report())
    return status


if __name__ == "__main__":
    asyncio.run(main())
