#!/usr/bin/env python3
"""
Binary Forensics Analysis — Entry Point.

Usage:
    python main.py analyze evidence.bin            # Full analysis summary
    python main.py analyze evidence.bin --json out.json
    python main.py strings evidence.bin -n 6
    python main.py carve disk.img -o carved/
    python main.py compare original.bin modified.bin
    python main.py hexdump evidence.bin --offset 0x200 --length 256
    python main.py hashes evidence.bin --verify <sha256>
    python main.py duplicates a.jpg b.jpg c.jpg
    python main.py exif photo.jpg
    python main.py strip photo.jpg -o clean/
    python main.py compare-images a.png b.png
    python main.py gzip evidence.bin
    python main.py gunzip evidence.bin.gz
"""

import os
import sys
import json
import logging
import argparse

from forensics import __version__ as APP_VERSION
from forensics.errors import ForensicsError

logger = logging.getLogger("forensics.cli")


def _fmt(n):
    s = float(n)
    for u in ("B", "KB", "MB", "GB"):
        if s < 1024:
            return f"{s:.1f} {u}"
        s /= 1024
    return f"{s:.1f} TB"


def _banner(title: str):
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)


def _int(value: str) -> int:
    """argparse type accepting decimal or 0x-prefixed hex."""
    return int(value, 0)


def _unused_path(path: str) -> str:
    """`path`, or `name_N.ext` if something is already there."""
    base, ext = os.path.splitext(path)
    n = 1
    while os.path.exists(path):
        path = f"{base}_{n}{ext}"
        n += 1
    return path


# ─── Commands ─────────────────────────────────────────────────

def cmd_analyze(args) -> int:
    from forensics.analyzer import AnalysisConfig, analyze_buffer
    from forensics.reader import file_info, load_file
    from forensics.report import build_report, to_json

    data = load_file(args.file)
    info = file_info(args.file)
    config = AnalysisConfig(
        block_size=args.block_size,
        min_string_length=args.min_length,
        carve=not args.no_carve,
    )

    def on_progress(stage, done, total):
        sys.stdout.write(f"\r  [{done}/{total}] {stage:<10s}")
        sys.stdout.flush()

    _banner(f"Forensic Analysis  v{APP_VERSION}")
    print(f"File:   {info.name}")
    print(f"Size:   {_fmt(info.size)} ({info.size:,} bytes)")
    print()
    result = analyze_buffer(data, info.name, config, on_progress=on_progress)
    print("\n")

    forensic = result.metadata["forensic"]
    print("─" * 60)
    print(f"  Signature:     {forensic['signature']}")
    print(f"  Detected type: {forensic['detected_type']}")
    print(f"  Entropy:       {forensic['entropy']:.4f} "
          f"({result.metadata['cryptographic']['randomness']} random)")
    if forensic["is_encrypted"]:
        print("  ⚠️  Sample looks encrypted")
    elif forensic["is_compressed"]:
        print("  Sample looks compressed")
    print("─" * 60)
    for name, digest in result.hashes.digests().items():
        print(f"  {name.upper():7s} {digest}")
    for match in result.threats.matches:
        print(f"  ⚠️  {match.algorithm}: {match.threat}")
    print("─" * 60)

    profile = result.entropy
    print(f"  Entropy blocks: {profile.total_blocks} × {profile.block_size} B  "
          f"avg {profile.average:.3f}  min {profile.minimum:.3f}  max {profile.maximum:.3f}")
    print(f"  Regions: {len(profile.regions)}")
    for insight in profile.insights:
        print(f"    • {insight}")

    p = result.patterns
    print(f"  Strings: {len(result.strings)}  URLs: {len(p.urls)}  "
          f"Emails: {len(p.emails)}  IPs: {len(p.ip_addresses)}  Paths: {len(p.paths)}")

    if result.carved is not None:
        print(f"  Embedded files: {result.carved.total_found}"
              + (f" ({', '.join(result.carved.types)})" if result.carved.types else ""))
    print()

    if args.json:
        report = build_report(result, info=info)
        with open(args.json, "w") as f:
            f.write(to_json(report))
        print(f"  Report: {args.json}")
    return 0


def cmd_strings(args) -> int:
    from forensics.reader import load_file
    from forensics.strings import classify_patterns, extract_strings

    data = load_file(args.file)
    strings = extract_strings(data, args.min_length)
    for s in strings:
        print(f"{s.offset:08X}  {s.value}")
    if args.patterns:
        report = classify_patterns(strings)
        print()
        for label, matches in (("URL", report.urls), ("Email", report.emails),
                               ("IP", report.ip_addresses), ("Path", report.paths)):
            for m in matches:
                print(f"  {label:5s} 0x{m.offset:08X}  {m.match}")
    return 0


def cmd_carve(args) -> int:
    from forensics.carver import carve, save_carved_files
    from forensics.reader import load_file

    data = load_file(args.file)
    result = carve(data)
    print(f"Found {result.total_found} embedded file(s)")
    for cf in result.files:
        print(f"  {cf.type:5s} offset={cf.hex_offset:>10s}  {_fmt(cf.length):>10s}")
    if args.output and result.files:
        paths = save_carved_files(data, result, args.output)
        print(f"\n  Saved {len(paths)} file(s) to {args.output}")
    return 0


def cmd_compare(args) -> int:
    from forensics.comparator import compare, compare_metadata
    from forensics.reader import file_info, load_file

    a, b = load_file(args.file1), load_file(args.file2)
    result = compare(a, b, max_differences=args.limit)
    meta = compare_metadata(file_info(args.file1), file_info(args.file2))

    print(f"Identical:   {'yes' if result.identical else 'no'}")
    print(f"Similarity:  {result.similarity:.2f}%")
    print(f"Differences: {result.total_differences:,}")
    print(f"Size delta:  {meta['size_delta']:+,} bytes")
    if result.differences:
        print()
        print(f"  {'Offset':>10s}  {'A':>3s}  {'B':>3s}  Context A / B")
        for d in result.differences:
            print(f"  0x{d.offset:08X}  {d.byte1:>3s}  {d.byte2:>3s}  "
                  f"{d.context1}  /  {d.context2}")
        if result.truncated:
            print(f"  … {result.total_differences - len(result.differences):,} more")
    return 0


def cmd_hexdump(args) -> int:
    from forensics.hexdump import hexdump
    from forensics.reader import BufferReader

    size = os.path.getsize(args.file)
    with open(args.file, "rb") as f, BufferReader(f, size) as reader:
        chunk = reader.read_at(args.offset, args.length)
    print(hexdump(chunk, bytes_per_row=args.width, start_offset=args.offset))
    return 0


def cmd_hashes(args) -> int:
    from forensics.hashing import calculate_all_hashes, verify_hash
    from forensics.reader import load_file

    hashes = calculate_all_hashes(load_file(args.file))
    for name, digest in hashes.digests().items():
        print(f"{name.upper():7s} {digest}")
    if args.verify:
        matched = [n for n, d in hashes.digests().items() if verify_hash(d, args.verify)]
        if matched:
            print(f"\n✅ Matches {matched[0].upper()}")
            return 0
        print("\n❌ No digest matches the expected hash")
        return 2
    return 0


def cmd_duplicates(args) -> int:
    from forensics.hashing import find_duplicates
    from forensics.reader import load_file

    report = find_duplicates((path, load_file(path)) for path in args.files)
    print(f"Files: {report.total_files}  Unique: {len(report.unique)}  "
          f"Duplicate groups: {report.duplicate_groups}  "
          f"Wasted: {_fmt(report.wasted_space)}")
    for group in report.groups:
        print(f"\n  {group[0].sha256}")
        for hf in group:
            print(f"    {hf.name}")
    return 0


def cmd_exif(args) -> int:
    from forensics.metadata import extract_exif
    from forensics.reader import load_file

    exif = extract_exif(load_file(args.file), os.path.basename(args.file))
    exif.pop("raw", None)
    print(json.dumps(exif, indent=2, default=str))
    return 0


def cmd_strip(args) -> int:
    from forensics.metadata import strip_metadata
    from forensics.reader import load_file

    result = strip_metadata(load_file(args.file), os.path.basename(args.file))
    if not result["success"]:
        print(f"❌ {result['error']}")
        return 1
    out_dir = args.output or os.path.dirname(os.path.abspath(args.file))
    os.makedirs(out_dir, exist_ok=True)
    path = _unused_path(os.path.join(out_dir, result["name"]))
    with open(path, "wb") as f:
        f.write(result["data"])
    print(f"Removed: {', '.join(result['removed'])}")
    print(f"Size:    {_fmt(result['original_size'])} → {_fmt(result['clean_size'])}")
    print(f"Saved:   {path}")
    return 0


def cmd_compare_images(args) -> int:
    from forensics.comparator import compare_images
    from forensics.reader import load_file

    result = compare_images(load_file(args.file1), load_file(args.file2))
    if result is None:
        print("❌ Both files must be images")
        return 1
    print(f"Dimensions match: {'yes' if result.dimensions_match else 'no'}")
    print(f"Colour similarity: {result.color_similarity:.2f}%")
    print(f"Verdict: {result.verdict}")
    return 0


def cmd_gzip(args) -> int:
    from forensics.compression import compress, compressed_name
    from forensics.reader import load_file

    result = compress(load_file(args.file))
    path = _unused_path(args.output or compressed_name(args.file))
    with open(path, "wb") as f:
        f.write(result.data)
    print(f"{_fmt(result.original_size)} → {_fmt(result.compressed_size)} "
          f"({result.ratio:.2f}% saved)")
    print(f"Saved: {path}")
    return 0


def cmd_gunzip(args) -> int:
    from forensics.compression import decompress, decompressed_name
    from forensics.reader import load_file

    packed = load_file(args.file)
    data = decompress(packed)
    path = _unused_path(args.output or decompressed_name(args.file))
    with open(path, "wb") as f:
        f.write(data)
    print(f"{_fmt(len(packed))} → {_fmt(len(data))}")
    print(f"Saved: {path}")
    return 0


# ─── Argument parsing ─────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Forensic analysis of raw binary files.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=APP_VERSION)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("analyze", help="Hashes, entropy, strings, signatures, carving")
    p.add_argument("file")
    p.add_argument("--json", default="", help="Write a JSON report here")
    p.add_argument("--block-size", type=int, default=256, help="Entropy block size")
    p.add_argument("-n", "--min-length", type=int, default=4, help="Minimum string length")
    p.add_argument("--no-carve", action="store_true", help="Skip file carving")
    p.set_defaults(func=cmd_analyze)

    p = sub.add_parser("strings", help="Printable strings")
    p.add_argument("file")
    p.add_argument("-n", "--min-length", type=int, default=4)
    p.add_argument("-p", "--patterns", action="store_true",
                   help="Also list URLs, emails, IPs and paths")
    p.set_defaults(func=cmd_strings)

    p = sub.add_parser("carve", help="Extract embedded files by signature")
    p.add_argument("file")
    p.add_argument("-o", "--output", default="", help="Save carved files here")
    p.set_defaults(func=cmd_carve)

    p = sub.add_parser("compare", help="Positional byte diff of two files")
    p.add_argument("file1")
    p.add_argument("file2")
    p.add_argument("--limit", type=int, default=1000, help="Differences to list")
    p.set_defaults(func=cmd_compare)

    p = sub.add_parser("hexdump", help="Hex + ASCII view")
    p.add_argument("file")
    p.add_argument("--offset", type=_int, default=0)
    p.add_argument("--length", type=_int, default=256)
    p.add_argument("--width", type=int, default=16, help="Bytes per row")
    p.set_defaults(func=cmd_hexdump)

    p = sub.add_parser("hashes", help="MD5 / SHA-1 / SHA-2 digests")
    p.add_argument("file")
    p.add_argument("--verify", default="", help="Expected digest to check")
    p.set_defaults(func=cmd_hashes)

    p = sub.add_parser("duplicates", help="Group identical files by SHA-256")
    p.add_argument("files", nargs="+")
    p.set_defaults(func=cmd_duplicates)

    p = sub.add_parser("exif", help="EXIF metadata and privacy findings")
    p.add_argument("file")
    p.set_defaults(func=cmd_exif)

    p = sub.add_parser("strip", help="Re-render an image without any metadata")
    p.add_argument("file")
    p.add_argument("-o", "--output", default="", help="Directory for the clean copy")
    p.set_defaults(func=cmd_strip)

    p = sub.add_parser("compare-images", help="Visual similarity of two images")
    p.add_argument("file1")
    p.add_argument("file2")
    p.set_defaults(func=cmd_compare_images)

    p = sub.add_parser("gzip", help="GZIP-compress a file")
    p.add_argument("file")
    p.add_argument("-o", "--output", default="", help="Output path (default FILE.gz)")
    p.set_defaults(func=cmd_gzip)

    p = sub.add_parser("gunzip", help="Decompress a GZIP file")
    p.add_argument("file")
    p.add_argument("-o", "--output", default="", help="Output path (default FILE without .gz)")
    p.set_defaults(func=cmd_gunzip)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        return args.func(args)
    except (OSError, ForensicsError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
