# forensics — Binary Forensics Analysis Engine
# Pure-Python analysis of raw byte buffers.
#
# Architecture (bottom → top):
#   byteclass    — Printable-byte test, literal pattern search, hex helpers
#   entropy      — Shannon entropy, block profiles, band regions, insights
#   signatures   — Magic-number catalog, type detection, header/footer search
#   carver       — Signature-based extraction of embedded files
#   strings      — Printable string extraction + URL/email/IP/path patterns
#   comparator   — Positional byte diff, similarity scoring, image similarity
#   hashing      — hashlib digests, hash verification, duplicate grouping
#   compression  — GZIP pack/unpack with size and ratio reporting
#   hexdump      — Shared hex/ASCII row formatter
#   metadata     — File metadata, EXIF, pixel analysis, stripping (via Pillow)
#   reader       — mmap file loading (the only input I/O)
#   analyzer     — Orchestrator (parallel independent analyses)
#   report       — Plain-data / JSON forensic report

__version__ = "1.0.0"
