#!/usr/bin/env python3
"""
VoiceIntake console front end.

Run with: ``voice-intake`` (or ``python -m src.cli``)

Drives one screening session from the keyboard: toggle the microphone,
read the live transcript, confirm answers, and request the PDF report.
"""

import argparse
import asyncio
import logging
import sys

from src.core.config import Settings, get_settings
from src.core.exceptions import VoiceIntakeError
from src.services.session import ScreeningSession

logger = logging.getLogger(__name__)

COMMANDS = {
    "l": "listen",
    "listen": "listen",
    "c": "confirm",
    "confirm": "confirm",
    "r": "report",
    "report": "report",
    "s": "status",
    "status": "status",
    "q": "quit",
    "quit": "quit",
    "exit": "quit",
    "h": "help",
    "help": "help",
    "?": "help",
}

HELP = """Commands:
  l, listen    start / stop recording
  c, confirm   submit the current answer
  r, report    generate the PDF report
  s, status    show microphone state and current transcript
  q, quit      end the session"""


def parse_command(line: str) -> str | None:
    """Map a typed line to a command name, or None if unrecognized."""
    return COMMANDS.get(line.strip().lower())


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voice-intake",
        description="Voice-driven TB pre-screening interview client.",
    )
    parser.add_argument("--backend-url", help="Base URL of the screening backend")
    parser.add_argument("--language", help="Recognition locale tag (e.g. en-US)")
    parser.add_argument(
        "--provider",
        choices=["whisper", "scripted"],
        help="Recognition engine",
    )
    parser.add_argument("--audio-file", help="Replay this audio file instead of the microphone")
    parser.add_argument("--device", type=int, help="sounddevice input index")
    parser.add_argument("--model", help="Whisper model size")
    parser.add_argument("--log-level", help="Python logging level")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return a copy of ``settings`` with command-line values applied."""
    update = {
        "backend_url": args.backend_url,
        "recognition_language": args.language,
        "recognition_provider": args.provider,
        "audio_device": args.device,
        "whisper_model": args.model,
        "log_level": args.log_level,
    }
    if args.audio_file:
        update["audio_source"] = "file"
        update["audio_file"] = args.audio_file
    return settings.model_copy(update={k: v for k, v in update.items() if v is not None})


def _print_status(session: ScreeningSession) -> None:
    print(f"Microphone: {session.state}")
    print(f"Transcript: {session.utterance.current or '(nothing yet)'}")
    print(f"Answers:    {len(session.log)} confirmed, {session.pending_submissions} sending")
    for index, answer in enumerate(session.log, start=1):
        print(f"  {index}. {answer}")


async def run(settings: Settings) -> int:
    """Interactive loop for one screening session."""
    session = ScreeningSession.from_settings(
        settings,
        on_response=lambda text: print(f"\nAI: {text}"),
        on_error=lambda exc: print(f"\n! {exc.detail}"),
    )
    print(f"AI: {session.display_response}")
    print(HELP)

    try:
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break

            command = parse_command(line)
            if command == "quit":
                break
            elif command == "listen":
                try:
                    state = session.toggle_listening()
                except VoiceIntakeError:
                    continue
                if state == "listening":
                    print("Recording... wait a couple seconds before speaking.")
                else:
                    print(f"Stopped. Transcript: {session.utterance.current or '(nothing yet)'}")
            elif command == "confirm":
                if not session.can_confirm:
                    print("Stop recording and wait for the transcript before confirming.")
                    continue
                session.confirm_answer()
            elif command == "report":
                try:
                    handle = await session.request_report()
                except VoiceIntakeError:
                    continue
                print(f"Report generated: {handle.filename}")
            elif command == "status":
                _print_status(session)
            else:
                print(HELP)
    finally:
        await session.aclose()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    settings = apply_overrides(get_settings(), args)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(run(settings))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
