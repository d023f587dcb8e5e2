"""
Demo script: infer and print the schema of delimited files.

Usage:
    python scripts/inspect_csv.py data/stops.csv data/trips.csv
    python scripts/inspect_csv.py --config stops.yaml       # use a saved config
    python scripts/inspect_csv.py --save stops.yaml data/stops.csv

Each file is read with a header row and comma delimiter unless a config is
given. For every column the resolved type and, for temporal columns, the
locked-in date/time format are logged. With --save, the inferred types of
the first file are written as a YAML config that can be hand-edited and
passed back via --config.
"""

from __future__ import annotations

import logging
import sys

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("inspect_csv")


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _pop_option(args: list[str], flag: str) -> str | None:
    """Remove ``flag VALUE`` from *args* and return VALUE (or None)."""
    if flag not in args:
        return None
    idx = args.index(flag)
    if idx + 1 >= len(args):
        raise SystemExit(f"{flag} needs a value")
    value = args[idx + 1]
    del args[idx:idx + 2]
    return value


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    import tabload
    from tabload.reader import read_raw, resolve_column_type, resolve_format

    args = sys.argv[1:]
    config_path = _pop_option(args, "--config")
    save_path = _pop_option(args, "--save")

    if config_path is not None:
        configs = [tabload.load_config(config_path)]
    else:
        base = tabload.new_builder().with_header().build()
        configs = [base.clone_with_name_file(path) for path in args]

    if not configs:
        raise SystemExit(__doc__)

    for i, config in enumerate(configs):
        log.info("=" * 70)
        log.info("Inspecting: %s", config.table_name)
        log.info("=" * 70)

        raw = read_raw(config)
        builder = tabload.new_builder().from_file(config.file_name).with_header()
        for position, name in enumerate(raw.columns):
            values = raw.iloc[:, position].tolist()
            column_type = resolve_column_type(config, name, position, values)
            fmt = resolve_format(config, name, column_type, values)
            suffix = f"  format={fmt.name}" if fmt is not None else ""
            log.info("  %-30s %s%s", name, column_type.name, suffix)
            if fmt is not None and isinstance(fmt, tabload.DateTimeFormat):
                builder.column(name).is_of_date_format(column_type, fmt)
            else:
                builder.column(name).is_of_type(column_type)

        df = tabload.read_table(config)
        log.info("  -> %s rows x %d cols", f"{len(df):,}", len(df.columns))

        if save_path is not None and i == 0:
            tabload.save_config(builder.build(), save_path)
            log.info("  Saved inferred config to %s", save_path)

    log.info("All files inspected.")


if __name__ == "__main__":
    main()
