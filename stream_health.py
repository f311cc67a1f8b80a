#!/usr/bin/env python3
"""
Stream Health

Command-line tool for testing RTMP and HLS streams. Uses TCP/HTTP probes
and a real VLC player to decide whether a stream is reachable and playable.

Usage:
  stream-health hls --url https://example.com/stream.m3u8 --duration 15 --vlc /usr/bin/vlc
  stream-health rtmp --url rtmp://example.com:1935/live/stream --vlc /usr/bin/vlc
  stream-health long-rtmp --url rtmp://example.com:1935/live/stream --vlc /usr/bin/vlc
  stream-health full-test --rtmpurl rtmp://example.com/stream --hlsurl https://example.com/stream.m3u8
"""

import argparse
import logging
import sys
from datetime import datetime
from typing import List, Optional, Tuple

from colorama import Fore, Style, init
from tabulate import tabulate

from stream_checks import (
    check_long_push_stream,
    check_pull_stream,
    check_push_stream,
    run_full_test,
)
from stream_config import (
    DEFAULT_LONG_PUSH_DURATION,
    DEFAULT_PULL_DURATION,
    DEFAULT_PUSH_DURATION,
    DEFAULT_VLC_PATH,
)
from stream_target import InvalidTargetError, StreamTarget

init(autoreset=True)

VLC_HELP = (
    f"Path to the VLC executable (default: {DEFAULT_VLC_PATH})"
)
URL_NOTE = ". Hostnames containing underscores (my_server.local) are rejected; use the IP address instead."


def configure_logging(verbose: bool = False) -> None:
    """Console logging for the run; DEBUG also shows every player output line."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stream-health",
        description="A simple command-line tool for testing RTMP and HLS streaming. "
                    "Uses VLC and HTTP requests to analyze the streaming status."
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every line of player output"
    )
    parser.add_argument(
        "--player-arg",
        action="append",
        default=[],
        metavar="ARG",
        help="Extra argument passed to the player before the URL, repeatable. "
             "Use --player-arg=-I for values starting with '-'"
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    hls = commands.add_parser(
        "hls",
        aliases=["hls-test"],
        help="Test HLS stream",
        description="Test HLS stream, provide your url, duration for your test and your VLC path."
    )
    hls.add_argument(
        "-u", "--url",
        help="URL of the HLS stream to test. For example: https://yoursite.com/hls/streaming.m3u8" + URL_NOTE
    )
    hls.add_argument(
        "-d", "--duration",
        type=int,
        default=DEFAULT_PULL_DURATION,
        help="Duration of the VLC test in seconds. 15 for a quick check, 100 or more for a long check "
             f"(default: {DEFAULT_PULL_DURATION})"
    )
    hls.add_argument("-v", "--vlc", default=DEFAULT_VLC_PATH, help=VLC_HELP)
    hls.set_defaults(handler=run_hls)

    rtmp = commands.add_parser(
        "rtmp",
        aliases=["rtmp-test"],
        help="Test RTMP stream",
        description="Test RTMP stream, provide your url and your VLC path."
    )
    rtmp.add_argument(
        "-u", "--url",
        help="URL of the RTMP stream to test. For example: rtmp://example.com:1935/stream" + URL_NOTE
    )
    rtmp.add_argument(
        "-d", "--duration",
        type=int,
        default=DEFAULT_PUSH_DURATION,
        help=f"Seconds of playback required before the stream path passes (default: {DEFAULT_PUSH_DURATION})"
    )
    rtmp.add_argument("-v", "--vlc", default=DEFAULT_VLC_PATH, help=VLC_HELP)
    rtmp.set_defaults(handler=run_rtmp)

    long_rtmp = commands.add_parser(
        "long-rtmp",
        aliases=["long-rtmp-test"],
        help=f"Test RTMP stream for {DEFAULT_LONG_PUSH_DURATION}s",
        description="Test RTMP stream for a long period, provide your url and your VLC path. "
                    "Only use it on a URL known to be working."
    )
    long_rtmp.add_argument(
        "-u", "--url",
        help="URL of the RTMP stream to test. For example: rtmp://example.com:1935/stream" + URL_NOTE
    )
    long_rtmp.add_argument(
        "-d", "--duration",
        type=int,
        default=DEFAULT_LONG_PUSH_DURATION,
        help=f"Seconds of playback required before the stream path passes (default: {DEFAULT_LONG_PUSH_DURATION})"
    )
    long_rtmp.add_argument("-v", "--vlc", default=DEFAULT_VLC_PATH, help=VLC_HELP)
    long_rtmp.set_defaults(handler=run_long_rtmp)

    full_test = commands.add_parser(
        "full-test",
        help="Test both RTMP and HLS stream simultaneously",
        description="Test both RTMP and HLS stream simultaneously, provide your urls, "
                    "duration for your test and your VLC path."
    )
    full_test.add_argument(
        "-r", "--rtmpurl",
        help="URL of the RTMP stream to test. For example: rtmp://example.com:1935/streaming" + URL_NOTE
    )
    full_test.add_argument(
        "-u", "--hlsurl",
        help="URL of the HLS stream to test. For example: https://yoursite.com/hls/streaming.m3u8" + URL_NOTE
    )
    full_test.add_argument(
        "-d", "--duration",
        type=int,
        default=DEFAULT_PULL_DURATION,
        help=f"Duration of the VLC HLS test in seconds (default: {DEFAULT_PULL_DURATION})"
    )
    full_test.add_argument("-v", "--vlc", default=DEFAULT_VLC_PATH, help=VLC_HELP)
    full_test.set_defaults(handler=run_full)

    return parser


def validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    """Reject incomplete or malformed input before any check runs (exits with usage)."""
    if not args.command:
        parser.error("a command is required")

    if args.command == "full-test":
        if not args.rtmpurl or not args.hlsurl or not args.duration or not args.vlc:
            parser.error("All flags (rtmpurl, hlsurl, duration, and VLC path) must be provided.")
        urls = [(StreamTarget.push, args.rtmpurl), (StreamTarget.pull, args.hlsurl)]
    else:
        if not args.url or not args.duration or not args.vlc:
            parser.error("All flags (url, duration, and VLC path) must be provided.")
        parse = StreamTarget.pull if args.handler is run_hls else StreamTarget.push
        urls = [(parse, args.url)]

    if args.duration < 0:
        parser.error("--duration must be a positive number of seconds")

    for parse, url in urls:
        try:
            parse(url)
        except InvalidTargetError as e:
            parser.error(str(e))


def print_header(title: str, rows: List[Tuple[str, str]]) -> None:
    print("=" * 60)
    print(f"{Style.BRIGHT}{title}")
    print("=" * 60)
    print(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    for label, value in rows:
        print(f"{label}: {value}")
    print()


def print_verdicts(verdicts: List[Tuple[str, bool]]) -> None:
    """One line per verdict, then a summary table."""
    print()
    for label, ok in verdicts:
        colour = Fore.GREEN if ok else Fore.RED
        print(f"{colour}{label}. Is it working? {ok}")

    table_data = [
        [i, label, "✅ PASS" if ok else "❌ FAIL"]
        for i, (label, ok) in enumerate(verdicts, 1)
    ]
    print()
    print(tabulate(table_data, headers=["#", "Check", "Result"], tablefmt="grid"))


def run_hls(args: argparse.Namespace) -> None:
    print_header("HLS Stream Test", [
        ("URL", args.url),
        ("Duration", f"{args.duration} seconds"),
        ("VLC Path", args.vlc),
    ])
    result = check_pull_stream(args.url, args.vlc, args.duration, player_args=args.player_arg)
    print_verdicts([
        ("HTTP HLS Test", result.playlist_available),
        ("VLC HLS Test", result.stream_playable),
    ])


def run_rtmp(args: argparse.Namespace) -> None:
    print_header("RTMP Stream Test", [
        ("URL", args.url),
        ("Duration", f"{args.duration} seconds"),
        ("VLC Path", args.vlc),
    ])
    result = check_push_stream(args.url, args.vlc, args.duration, player_args=args.player_arg)
    print_verdicts([
        ("RTMP Server Test", result.server_reachable),
        ("RTMP Stream Path Test", result.stream_playable),
    ])


def run_long_rtmp(args: argparse.Namespace) -> None:
    print_header("Long RTMP Stream Test", [
        ("URL", args.url),
        ("Duration", f"{args.duration} seconds"),
        ("VLC Path", args.vlc),
    ])
    result = check_long_push_stream(args.url, args.vlc, args.duration, player_args=args.player_arg)
    print_verdicts([
        ("RTMP Server Test", result.server_reachable),
        ("RTMP Stream Path Test", result.stream_playable),
    ])


def run_full(args: argparse.Namespace) -> None:
    print_header("Full Stream Test (RTMP + HLS)", [
        ("RTMP URL", args.rtmpurl),
        ("HLS URL", args.hlsurl),
        ("Duration", f"{args.duration} seconds"),
        ("VLC Path", args.vlc),
    ])
    result = run_full_test(args.rtmpurl, args.hlsurl, args.duration, args.vlc, player_args=args.player_arg)
    print_verdicts([
        ("RTMP Server Test", result.push.server_reachable),
        ("RTMP Stream Path Test", result.push.stream_playable),
        ("HTTP HLS Test", result.pull.playlist_available),
        ("VLC HLS Test", result.pull.stream_playable),
    ])
    print("All tests completed")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI function. Verdicts are output, not the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(parser, args)
    configure_logging(args.verbose)

    args.handler(args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
