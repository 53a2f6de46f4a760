import argparse
import logging
import sys

from dcatturtle.core.engine import run_export, run_map
from dcatturtle.errors import MappingError
from dcatturtle.io.rdf_writer import SERIALIZERS


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    if quiet:
        level = logging.WARNING
    else:
        level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="dcatturtle: JSON metadata -> RDF")
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    ap.add_argument("--quiet", "-q", action="store_true", help="Only log warnings and errors")
    sub = ap.add_subparsers(dest="cmd", required=True)

    # full export from a root config
    sp_exp = sub.add_parser("export", help="Map a JSON document with a root config (all elements + relations)")
    sp_exp.add_argument("document")
    sp_exp.add_argument("--config", default=None,
                        help="Root config JSON (defaults to $DCATTURTLE_CONFIG)")
    sp_exp.add_argument("--format", default="turtle", choices=sorted(SERIALIZERS))
    sp_exp.add_argument("--out", "-o", default=None, help="Output file (stdout if omitted)")
    sp_exp.add_argument("--json-encoding", default="utf-8")

    # single resource mapping
    sp_map = sub.add_parser("map", help="Map a JSON document with a single resource mapping file")
    sp_map.add_argument("document")
    sp_map.add_argument("mapping")
    sp_map.add_argument("--prefixes", default=None, help="JSON object of prefix -> namespace")
    sp_map.add_argument("--format", default="turtle", choices=sorted(SERIALIZERS))
    sp_map.add_argument("--out", "-o", default=None, help="Output file (stdout if omitted)")
    sp_map.add_argument("--json-encoding", default="utf-8")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        if args.cmd == "export":
            result = run_export(args.document, args.config, args.out,
                                fmt=args.format, json_encoding=args.json_encoding)
        else:
            result = run_map(args.document, args.mapping, args.out,
                             prefixes_path=args.prefixes, fmt=args.format,
                             json_encoding=args.json_encoding)
    except (ValueError, MappingError, OSError) as exc:
        logging.error("%s", exc)
        return 1

    if args.out is None:
        sys.stdout.write(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
