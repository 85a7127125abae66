"""
mobi-header CLI: dump the PDB/MOBI/EXTH headers of an e-book as JSON.

Usage:
  mobi-header book.mobi            - header tree without the PDB record table
  mobi-header --full book.mobi     - include the PDB record table
  mobi-header --title book.mobi    - also read the full title from record 0

Defaults can be set in ~/.mobiheader/config.toml:

    full = false
    title = false
    indent = 2
    log_level = "WARNING"

Absent values (unset dates, a missing EXTH block) are left out of the JSON
rather than printed as null.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from mobiheader import __version__

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".mobiheader" / "config.toml"

# Default config
DEFAULT_CONFIG: dict[str, Any] = {
    "full": False,
    "title": False,
    "indent": 2,
    "log_level": "WARNING",
}


def _load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load CLI config from TOML file, falling back to defaults."""
    config = dict(DEFAULT_CONFIG)

    path = config_path or DEFAULT_CONFIG_PATH
    if path.is_file():
        try:
            import tomllib
        except ImportError:
            try:
                import tomli as tomllib
            except ImportError:
                log.warning("tomllib/tomli not available, using default config")
                return config

        try:
            with open(path, "rb") as f:
                file_config = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            log.warning("Failed to load config from %s: %s", path, e)
            return config

        unknown = set(file_config) - set(DEFAULT_CONFIG)
        if unknown:
            log.warning("Ignoring unknown config keys in %s: %s", path, ", ".join(sorted(unknown)))
        config.update({k: v for k, v in file_config.items() if k in DEFAULT_CONFIG})

    return config


def _drop_nulls(value: Any) -> Any:
    """Recursively remove None entries from dicts."""
    if isinstance(value, dict):
        return {k: _drop_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_nulls(v) for v in value]
    return value


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


def cmd_dump(args: argparse.Namespace, config: dict[str, Any]) -> None:
    """Decode one file and print its header tree."""
    from mobiheader._format.mobi import decode_header, read_full_title
    from mobiheader._format.stream import DecodeError

    full = args.full or bool(config["full"])
    with_title = args.title or bool(config["title"])
    indent = args.indent if args.indent is not None else config["indent"]

    try:
        with open(args.path, "rb") as f:
            header = decode_header(f)
            data = header.to_dict(include_records=full)
            if with_title:
                data["full_title"] = read_full_title(f, header)
    except DecodeError as e:
        print(f"Error: Cannot decode {args.path}: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"Error: Cannot read {args.path}: {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps({"mobi_header": _drop_nulls(data)}, indent=indent, ensure_ascii=True))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="mobi-header",
        description="Dump PDB/MOBI/EXTH header metadata of an e-book as JSON",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("path", help="MOBI/AZW/PRC file")
    parser.add_argument("--full", action="store_true", help="Include the PDB record table")
    parser.add_argument("--title", action="store_true", help="Read the full title from record 0")
    parser.add_argument("--indent", type=int, help="JSON indent (default from config: 2)")
    parser.add_argument("--config", type=Path, help=f"Config file (default {DEFAULT_CONFIG_PATH})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log decode stages")

    args = parser.parse_args(argv)

    config = _load_config(args.config)
    _setup_logging("DEBUG" if args.verbose else config["log_level"])

    cmd_dump(args, config)


if __name__ == "__main__":
    main()
