"""Command-line interface for depth_dither.

Decodes a PNG, reduces it to a few bits per channel with Floyd-Steinberg
dithering, and writes the result back as PNG.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from depth_dither.core.pixel import MAX_BITS, MIN_BITS
from depth_dither.core.settings import (
    DEFAULT_BITS,
    DEFAULT_INPUT,
    DEFAULT_OUTPUT,
    Settings,
)

# Every recognised option takes exactly one value
OPTIONS = ("-i", "-o", "-b")


def _bits(value: str) -> int:
    """argparse type for -b: an integer in [MIN_BITS, MAX_BITS]."""
    try:
        bits = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid bit depth: {value!r}") from None
    if not MIN_BITS <= bits <= MAX_BITS:
        raise argparse.ArgumentTypeError(
            f"bits per channel must be in [{MIN_BITS}, {MAX_BITS}], got {bits}"
        )
    return bits


def _build_parser() -> argparse.ArgumentParser:
    # Help is handled like any other unknown token: print usage, exit 0.
    parser = argparse.ArgumentParser(
        prog="depth-dither",
        description="Reduce a PNG to fewer bits per channel with "
        "Floyd-Steinberg dithering (.png files only).",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-i",
        dest="input",
        type=Path,
        default=DEFAULT_INPUT,
        metavar="PATH",
        help=f"Input PNG path (default: {DEFAULT_INPUT}).",
    )
    parser.add_argument(
        "-o",
        dest="output",
        type=Path,
        default=DEFAULT_OUTPUT,
        metavar="PATH",
        help=f"Output PNG path (default: {DEFAULT_OUTPUT}).",
    )
    parser.add_argument(
        "-b",
        dest="bits",
        type=_bits,
        default=DEFAULT_BITS,
        metavar="N",
        help=f"Bits per channel of the output, {MIN_BITS} to {MAX_BITS} "
        f"(default: {DEFAULT_BITS}).",
    )
    return parser


def _first_unknown(argv: list[str]) -> str | None:
    """Walk tokens in order; return the first that is not an option or its value.

    A trailing option with no value is left for argparse to reject.
    """
    i = 0
    while i < len(argv):
        if argv[i] not in OPTIONS:
            return argv[i]
        i += 2
    return None


def _run(settings: Settings) -> int:
    """Decode, dither and encode once, reporting failures on stderr."""
    from depth_dither.core.codec import CodecError, decode, encode
    from depth_dither.core.diffusion import dither_image

    try:
        image = decode(settings.input_path)
    except CodecError as e:
        print(e, file=sys.stderr)
        return 0

    dither_image(image, settings.bits)

    try:
        encode(settings.output_path, image)
    except CodecError as e:
        print(e, file=sys.stderr)
        return 0

    print(f"Saved to {settings.output_path}", file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns the process exit status. Configuration errors (a flag without its
    value, an invalid -b) go through argparse and exit with status 2.
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = _build_parser()
    if _first_unknown(argv) is not None:
        parser.print_help(sys.stdout)
        return 0

    args = parser.parse_args(argv)
    settings = Settings(
        input_path=args.input,
        output_path=args.output,
        bits=args.bits,
    )
    return _run(settings)


if __name__ == "__main__":
    sys.exit(main())
