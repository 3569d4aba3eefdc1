"""
hxtool: stateless binary manipulation for pipes.

Each subcommand reads the whole input (a file given with -i, or stdin),
transforms it and writes the result to stdout.
"""

import argparse
import sys
from typing import BinaryIO, Callable, Dict, List, Optional, TextIO

from .core.filetype import detect_file_type
from .errors import HexEditError
from .utils.binops import (
    DUMP_WIDTH,
    apply_patches,
    bin2hex,
    byte_stats,
    hex2bin,
    hex_dump,
    parse_hex_loose,
    parse_range,
    replace_bytes,
)
from .utils.search import find_all


class ToolError(HexEditError):
    """A subcommand could not complete; the message is shown to the user."""


def read_input(path: Optional[str], stdin: BinaryIO) -> bytes:
    if path is None:
        return stdin.read()

    with open(path, 'rb') as f:
        return f.read()


def format_match(offset: int, fmt: str) -> str:
    if fmt == 'dec':
        return str(offset)
    if fmt == 'both':
        return f"0x{offset:08X} ({offset})"

    return f"0x{offset:08X}"


class Tool:
    """Runs one parsed hxtool command against the given streams."""

    def __init__(self, stdin: BinaryIO, stdout: BinaryIO) -> None:
        self.stdin = stdin
        self.stdout = stdout
        self.commands: Dict[str, Callable[[argparse.Namespace], None]] = {
            'find': self.cmd_find,
            'slice': self.cmd_slice,
            'replace': self.cmd_replace,
            'patch': self.cmd_patch,
            'info': self.cmd_info,
            'conv': self.cmd_conv,
        }

    def run(self, args: argparse.Namespace) -> None:
        self.commands[args.command](args)

    def _read(self, args: argparse.Namespace) -> bytes:
        return read_input(args.input, self.stdin)

    def _print(self, line: str = '') -> None:
        self.stdout.write((line + '\n').encode('utf-8'))

    def cmd_find(self, args: argparse.Namespace) -> None:
        data = self._read(args)
        pattern = parse_hex_loose(args.pattern)

        for offset in find_all(data, pattern):
            self._print(format_match(offset, args.format))

    def cmd_slice(self, args: argparse.Namespace) -> None:
        data = self._read(args)
        start, end = parse_range(args.range, len(data))

        if start >= len(data):
            raise ToolError(f"Start offset {start} exceeds file size {len(data)}")

        chunk = data[start:end]
        if args.hex:
            for line in hex_dump(chunk, start):
                self._print(line)
        else:
            self.stdout.write(chunk)

    def cmd_replace(self, args: argparse.Namespace) -> None:
        data = self._read(args)
        result, _ = replace_bytes(data, parse_hex_loose(args.from_hex), parse_hex_loose(args.to_hex), args.all)
        self.stdout.write(result)

    def cmd_patch(self, args: argparse.Namespace) -> None:
        data = self._read(args)
        self.stdout.write(apply_patches(data, args.patches))

    def cmd_info(self, args: argparse.Namespace) -> None:
        data = self._read(args)
        self._print(f"Size: {len(data)} bytes (0x{len(data):X})")

        if data:
            stats = byte_stats(data)
            self._print(f"Entropy: {stats.entropy:.4f} bits/byte")
            self._print(f"Null bytes: {stats.nulls} ({stats.null_ratio * 100:.1f}%)")
            self._print(f"Printable ASCII: {stats.printable} ({stats.printable_ratio * 100:.1f}%)")

        self._print(f"Type: {detect_file_type(data, args.input)}")

    def cmd_conv(self, args: argparse.Namespace) -> None:
        if args.direction in ('bin2hex', 'b2h'):
            self.stdout.write(bin2hex(self._read(args), args.width).encode('ascii'))
        elif args.direction in ('hex2bin', 'h2b'):
            text = self._read(args).decode('utf-8', errors='replace')
            self.stdout.write(hex2bin(text))
        else:
            raise ToolError("Direction must be 'bin2hex' (b2h) or 'hex2bin' (h2b)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hxtool",
        description="hxtool - Binary hex tool for pipes"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_input(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("-i", "--input", type=str, help="Input file (default: stdin)")

    find = subparsers.add_parser("find", help="Find a hex pattern and print matching offsets")
    find.add_argument("pattern", help='Hex pattern, e.g. "DEADBEEF" or "DE AD BE EF"')
    find.add_argument("-f", "--format", choices=("hex", "dec", "both"), default="hex",
                      help="Offset format")
    add_input(find)

    slice_ = subparsers.add_parser("slice", help="Extract a byte range")
    slice_.add_argument("range", help='Range "start:end" in 0x hex or decimal, e.g. "0x100:0x200" or "100:"')
    slice_.add_argument("-x", "--hex", action="store_true", help="Print a hex dump instead of raw bytes")
    add_input(slice_)

    replace = subparsers.add_parser("replace", help="Replace a hex pattern")
    replace.add_argument("from_hex", metavar="FROM", help="Pattern to find (hex)")
    replace.add_argument("to_hex", metavar="TO", help="Replacement (hex)")
    replace.add_argument("-a", "--all", action="store_true", help="Replace all occurrences")
    add_input(replace)

    patch = subparsers.add_parser("patch", help="Patch bytes at offsets")
    patch.add_argument("patches", nargs="+", help='Patches "offset=hexvalue", e.g. "0x100=FF"')
    add_input(patch)

    info = subparsers.add_parser("info", help="Show size, entropy and byte statistics")
    add_input(info)

    conv = subparsers.add_parser("conv", help="Convert between hex text and binary")
    conv.add_argument("direction", help="hex2bin (h2b) or bin2hex (b2h)")
    conv.add_argument("-w", "--width", type=int, default=DUMP_WIDTH, help="bin2hex bytes per line")
    add_input(conv)

    return parser


def main(argv: Optional[List[str]] = None, stdin: Optional[BinaryIO] = None,
         stdout: Optional[BinaryIO] = None, stderr: Optional[TextIO] = None) -> int:
    """Entry point for hxtool; returns the process exit status."""
    args = build_parser().parse_args(argv)
    tool = Tool(stdin or sys.stdin.buffer, stdout or sys.stdout.buffer)

    try:
        tool.run(args)
    except (HexEditError, OSError) as e:
        print(f"Error: {e}", file=stderr or sys.stderr)
        return 1

    tool.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
