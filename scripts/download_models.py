#!/usr/bin/env python3
"""
Pre-fetch the Whisper model used by the recognition engine.

Loading a model the first time downloads it into the Hugging Face cache;
running this once before a screening session avoids a long pause on the
first "listen".
"""

import argparse
import sys
import time

from faster_whisper import WhisperModel

MODEL_SIZES = ["tiny", "base", "small", "medium", "large-v3"]


def download_model(model_name: str, device: str = "cpu", compute_type: str = "int8") -> bool:
    """Load ``model_name`` once so it is cached locally. Returns True on success."""
    print(f"Fetching Whisper model '{model_name}' (device={device}, compute={compute_type})")
    started = time.perf_counter()
    try:
        WhisperModel(model_name, device=device, compute_type=compute_type)
    except Exception as exc:
        print(f"Failed to fetch {model_name}: {exc}")
        return False
    print(f"Ready in {time.perf_counter() - started:.1f}s")
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--model", default=None, choices=MODEL_SIZES, help="Defaults to WHISPER_MODEL")
    parser.add_argument("--device", default="cpu", choices=["cpu", "cuda"])
    parser.add_argument("--compute-type", default="int8")
    args = parser.parse_args()

    model = args.model
    if model is None:
        from src.core.config import get_settings

        model = get_settings().whisper_model

    return 0 if download_model(model, args.device, args.compute_type) else 1


if __name__ == "__main__":
    sys.exit(main())
