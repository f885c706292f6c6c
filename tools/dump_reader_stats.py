from __future__ import annotations

import argparse
import contextlib
import sys
from typing import Optional

from capture.reader import ReaderConfig, ReaderFactory, SourceError


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Read frames from a source and print reader stats.")
    ap.add_argument("--prefer", choices=["camera", "device", "null"], default="camera")
    ap.add_argument("--device", type=str, default="0")
    ap.add_argument("--frames", type=int, default=300, help="Number of frames to read.")
    args = ap.parse_args(argv)

    device = int(args.device) if args.device.isdigit() else args.device
    reader = ReaderFactory.from_config(ReaderConfig(prefer=args.prefer, device=device))
    try:
        reader.start()
    except SourceError as exc:
        sys.stderr.write(f"could not open source: {exc}\n")
        return 1

    try:
        for _ in range(args.frames):
            if reader.read() is None:
                sys.stderr.write("source disconnected\n")
                break
        stats = reader.stats()
        print(vars(stats))
    finally:
        with contextlib.suppress(Exception):
            reader.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
