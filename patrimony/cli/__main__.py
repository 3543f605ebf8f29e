from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from patrimony.config.loader import DEFAULT_CONFIG_PATH, AppConfig, ConfigError, load_config
from patrimony.importing.rows import detect_header
from patrimony.logging.error_log import ErrorLogBuffer
from patrimony.logging.init import log_summary, set_debug, setup_logging
from patrimony.services.import_service import ImportValidationError, import_file
from patrimony.services.items import compute_stats
from patrimony.services.reconciliation import DUPLICATE_POLICIES, compare_files
from patrimony.services.registry import (
    RegistryValidationError,
    add_location,
    add_supplier,
    delete_location,
    delete_supplier,
    update_supplier,
)
from patrimony.services.summary import (
    render_comparison_summary,
    render_import_summary,
    render_stats_summary,
)
from patrimony.sources import SourceError, read_grid
from patrimony.storage import ItemNotFoundError, StorageError, open_store

"""Command line entrypoint.

    python -m patrimony.cli import FILE --location LOCATION
    python -m patrimony.cli compare FILE_A FILE_B
    python -m patrimony.cli inspect FILE
    python -m patrimony.cli list
    python -m patrimony.cli stats
    python -m patrimony.cli supplier add|update|delete|list ...
    python -m patrimony.cli location add|delete|list ...

Exit codes: 0 success (comparison without differences), 1 fatal error,
2 partial (rows skipped on import, differences found on compare).
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2

INSPECT_SAMPLE_ROWS = 5


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so its database settings win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="patrimony", description="Patrimony inventory import & reconciliation")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Path to YAML config")
    sub = p.add_subparsers(dest="command", required=True)

    def header_flags(sp: argparse.ArgumentParser) -> None:
        g = sp.add_mutually_exclusive_group()
        g.add_argument("--has-header", dest="has_header", action="store_const", const=True,
                       help="First row is a header")
        g.add_argument("--no-header", dest="has_header", action="store_const", const=False,
                       help="First row is data")
        sp.set_defaults(has_header=None)

    sp = sub.add_parser("import", help="Import a CSV / spreadsheet into the store")
    sp.add_argument("file", type=Path)
    sp.add_argument("--location", required=True, help="Location assigned to every imported item")
    sp.add_argument("--user", default="system", help="User name written to the audit log")
    header_flags(sp)

    sp = sub.add_parser("compare", help="Compare two CSV / spreadsheet files by asset tag")
    sp.add_argument("file_a", type=Path)
    sp.add_argument("file_b", type=Path)
    sp.add_argument("--duplicates", choices=DUPLICATE_POLICIES, default=None,
                    help="Resolution of asset tags repeated within one file")
    header_flags(sp)

    sp = sub.add_parser("inspect", help="Show header decision and first rows of a file")
    sp.add_argument("file", type=Path)
    header_flags(sp)

    sub.add_parser("list", help="List stored items")
    sub.add_parser("stats", help="Show inventory totals")

    sp = sub.add_parser("supplier", help="Manage the supplier registry")
    ssub = sp.add_subparsers(dest="action", required=True)
    a = ssub.add_parser("add", help="Register a supplier")
    a.add_argument("name")
    a.add_argument("--address", default="")
    a.add_argument("--phone", default="")
    a.add_argument("--user", default="system")
    a = ssub.add_parser("update", help="Change supplier fields")
    a.add_argument("id")
    a.add_argument("--name")
    a.add_argument("--address")
    a.add_argument("--phone")
    a.add_argument("--user", default="system")
    a = ssub.add_parser("delete", help="Remove a supplier")
    a.add_argument("id")
    a.add_argument("--user", default="system")
    ssub.add_parser("list", help="List suppliers")

    sp = sub.add_parser("location", help="Manage the location registry")
    lsub = sp.add_subparsers(dest="action", required=True)
    a = lsub.add_parser("add", help="Register a location")
    a.add_argument("name")
    a.add_argument("--responsible", default="")
    a.add_argument("--user", default="system")
    a = lsub.add_parser("delete", help="Remove a location by name")
    a.add_argument("name")
    a.add_argument("--user", default="system")
    lsub.add_parser("list", help="List locations")
    return p.parse_args(argv)


def _has_header(args: argparse.Namespace, cfg: AppConfig) -> bool | None:
    return args.has_header if args.has_header is not None else cfg.import_options.has_header


def _cmd_import(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    error_log = ErrorLogBuffer()
    try:
        with open_store(cfg) as store:
            result = import_file(
                args.file,
                store,
                location=args.location,
                defaults=cfg.defaults,
                has_header=_has_header(args, cfg),
                delimiter=cfg.import_options.delimiter,
                error_log=error_log,
                batch_size=cfg.import_options.batch_size,
                user_name=args.user,
                require_registered_location=cfg.import_options.require_registered_location,
            )
    except (SourceError, ImportValidationError, StorageError) as e:
        logger.error(f"import: {e}")
        return EXIT_FATAL
    finally:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"skipped rows written to {log_path}")

    log_summary(render_import_summary(result).removeprefix("SUMMARY "))
    return EXIT_PARTIAL if result.skipped > 0 else EXIT_SUCCESS


def _cmd_compare(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    try:
        report = compare_files(
            args.file_a,
            args.file_b,
            cfg.defaults,
            has_header=_has_header(args, cfg),
            delimiter=cfg.import_options.delimiter,
            duplicates=args.duplicates or cfg.import_options.duplicate_policy,
        )
    except (SourceError, StorageError) as e:
        logger.error(f"compare: {e}")
        return EXIT_FATAL

    for item in report.only_in_a:
        logger.info(f"only in {args.file_a.name}: {item.asset_tag} {item.name}")
    for item in report.only_in_b:
        logger.info(f"only in {args.file_b.name}: {item.asset_tag} {item.name}")
    for diff in report.differing:
        logger.info(f"differs {diff.item_a.asset_tag}: " + "; ".join(diff.field_differences))
    logger.info(f"{report.total_differences} differences found")

    log_summary(render_comparison_summary(report).removeprefix("SUMMARY "))
    return EXIT_SUCCESS if report.is_clean else EXIT_PARTIAL


def _cmd_inspect(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    try:
        grid = read_grid(args.file, delimiter=cfg.import_options.delimiter)
    except SourceError as e:
        logger.error(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {args.file.name} rows={len(grid)}")
    has_header = _has_header(args, cfg)
    header = detect_header(grid[0]) if has_header is None else has_header
    source = "heuristic" if has_header is None else "configured"
    print(f"  header_detected={header} ({source})")
    for row in grid[:INSPECT_SAMPLE_ROWS]:
        print(f"    {row}")
    return EXIT_SUCCESS


def _cmd_list(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    try:
        with open_store(cfg) as store:
            items = store.list_all()
    except StorageError as e:
        logger.error(f"list: {e}")
        return EXIT_FATAL
    for item in items:
        print(f"{item.asset_tag}\t{item.acquisition_date}\t{item.name}\t{item.location}\t{item.status.value}")
    log_summary(render_stats_summary(compute_stats(items)).removeprefix("SUMMARY "))
    return EXIT_SUCCESS


def _cmd_stats(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    try:
        with open_store(cfg) as store:
            stats = compute_stats(store.list_all())
    except StorageError as e:
        logger.error(f"stats: {e}")
        return EXIT_FATAL
    log_summary(render_stats_summary(stats).removeprefix("SUMMARY "))
    return EXIT_SUCCESS


def _cmd_supplier(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    try:
        with open_store(cfg) as store:
            if args.action == "add":
                supplier = add_supplier(
                    store, args.name, address=args.address, phone=args.phone, user_name=args.user
                )
                logger.info(f"supplier added: {supplier.id} {supplier.name}")
            elif args.action == "update":
                changes = {
                    k: getattr(args, k)
                    for k in ("name", "address", "phone")
                    if getattr(args, k) is not None
                }
                supplier = update_supplier(store, args.id, changes, user_name=args.user)
                logger.info(f"supplier updated: {supplier.id} {supplier.name}")
            elif args.action == "delete":
                supplier = store.get_supplier(args.id)
                if supplier is None:
                    raise ItemNotFoundError(f"supplier not found: {args.id}")
                delete_supplier(store, supplier, user_name=args.user)
                logger.info(f"supplier deleted: {supplier.id} {supplier.name}")
            else:
                suppliers = store.list_suppliers()
                for s in suppliers:
                    print(f"{s.id}\t{s.name}\t{s.address}\t{s.phone}")
                log_summary(f"suppliers={len(suppliers)}")
    except (RegistryValidationError, StorageError) as e:
        logger.error(f"supplier: {e}")
        return EXIT_FATAL
    return EXIT_SUCCESS


def _cmd_location(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    try:
        with open_store(cfg) as store:
            if args.action == "add":
                location = add_location(
                    store, args.name, responsible=args.responsible, user_name=args.user
                )
                logger.info(f"location added: {location.name}")
            elif args.action == "delete":
                location = store.get_location_by_name(args.name)
                if location is None:
                    raise ItemNotFoundError(f"location not found: {args.name}")
                delete_location(store, location, user_name=args.user)
                logger.info(f"location deleted: {location.name}")
            else:
                locations = store.list_locations()
                for loc in locations:
                    print(f"{loc.name}\t{loc.responsible}")
                log_summary(f"locations={len(locations)}")
    except (RegistryValidationError, StorageError) as e:
        logger.error(f"location: {e}")
        return EXIT_FATAL
    return EXIT_SUCCESS


_COMMANDS = {
    "import": _cmd_import,
    "compare": _cmd_compare,
    "inspect": _cmd_inspect,
    "list": _cmd_list,
    "stats": _cmd_stats,
    "supplier": _cmd_supplier,
    "location": _cmd_location,
}


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not fall back to sys.argv (pytest args)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(Path(args.config))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    return _COMMANDS[args.command](args, cfg, logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
