#!/usr/bin/env python3
"""
POCO Client Code Generator

Parses C# POCO declarations and generates client data types:
  1. Picks types and members by attribute conventions
  2. Mirrors them into namespaces with a client suffix
  3. Writes the declarations as one C# source file

Usage:
    python generate_poco_client.py Models.cs --output Client.cs
    python generate_poco_client.py Models.cs --doc Models.xml --methods datacontract --suffix .Client
"""

import argparse
import logging
import sys
import time
import xml.etree.ElementTree as ET
from pathlib import Path

# Add parent directory to path so pocogen package can be found
sys.path.insert(0, str(Path(__file__).parent.parent))

from pocogen import (
    CSharpGenerator,
    DeclarationEmitter,
    DocCommentLookup,
    PocoGenError,
    get_cherry_types,
    parse_files,
    parse_methods,
)


def _configure_logging(verbosity: int):
    """0 -> WARNING, 1 -> INFO, 2+ -> DEBUG"""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    ))
    root = logging.getLogger("pocogen")
    root.setLevel(level)
    root.addHandler(handler)


def main():
    start_time = time.perf_counter()

    parser = argparse.ArgumentParser(description="Generate client data types from C# POCOs")
    parser.add_argument("sources", nargs="*", help="C# source files with POCO declarations")
    parser.add_argument("--source", action="append", default=[], help="C# source file (alternative)")
    parser.add_argument("--doc", action="append", default=[], help="XML documentation file")
    parser.add_argument("--output", "-o", default="", help="Output C# file")
    parser.add_argument("--suffix", default=".Client", help="Suffix appended to client namespaces")
    parser.add_argument("--methods", action="append", default=[],
                        help="Cherry picking method: all, datacontract, newtonsoftjson, serializable, aspnet")
    parser.add_argument("--verbose", "-v", action="count", default=0, help="More logging")
    args = parser.parse_args()

    _configure_logging(args.verbose)

    sources = args.sources + args.source
    if not sources:
        parser.error("At least one source file is required")

    output = Path(args.output or f"{Path(sources[0]).stem}.Client.cs")

    try:
        methods = parse_methods(args.methods)
        assembly = parse_files(sources)

        doc_lookup = None
        if args.doc:
            doc_lookup = DocCommentLookup()
            for doc in args.doc:
                doc_lookup.merge(DocCommentLookup.load(doc))

        cherry_types = get_cherry_types(assembly.types, methods)
        if not cherry_types:
            print("No types selected for generation", file=sys.stderr)
            return 1

        unit = DeclarationEmitter(doc_lookup).emit(cherry_types, methods, args.suffix)
    except (PocoGenError, OSError, ET.ParseError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    output.parent.mkdir(parents=True, exist_ok=True)
    if not CSharpGenerator(unit).save_code_to_file(output):
        return 1
    print(f"Generated: {output}")

    elapsed = time.perf_counter() - start_time
    print(f"Generation completed in {elapsed*1000:.2f} ms")
    return 0


if __name__ == "__main__":
    sys.exit(main())
