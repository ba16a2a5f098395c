"""Administrative CLI for the backup coordinator.

Usage:
    python -m backup_coordinator.cli COMMAND [OPTIONS]

Examples:
    # Create ledger tables (SQLite deployments; PostgreSQL uses alembic)
    python -m backup_coordinator.cli init-db

    # Show counters and policy, plus optional lookups
    python -m backup_coordinator.cli show --node node-1 --backup 3

    # Update the minimum-replica policy as the owner
    python -m backup_coordinator.cli set-min-replicas 5 --caller owner --block 120

    # Serve the HTTP API
    python -m backup_coordinator.cli serve
"""

import asyncio
from argparse import ArgumentParser, Namespace

import structlog

from backup_coordinator.core.config import Settings, configure_logging
from backup_coordinator.core.context import ExecutionContext
from backup_coordinator.core.database import create_engine, create_session_factory, create_tables
from backup_coordinator.services.coordinator import BackupCoordinator
from backup_coordinator.services.exceptions import CoordinatorError
from backup_coordinator.uow import create_uow_factory

logger = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> Namespace:
    """Parse command-line arguments."""
    parser = ArgumentParser(description="Backup coordinator administration")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create ledger tables if missing")

    show = subparsers.add_parser("show", help="Print counters, policy and lookups")
    show.add_argument("--node", action="append", default=[], help="Node identity to look up")
    show.add_argument("--backup", action="append", type=int, default=[], help="Backup id")
    show.add_argument("--restore", action="append", type=int, default=[], help="Restore id")
    show.add_argument("--active-nodes", action="store_true", help="List all active nodes")

    set_min = subparsers.add_parser("set-min-replicas", help="Update minimum-replica policy")
    set_min.add_argument("value", type=int, help="New minimum replica count")
    set_min.add_argument("--caller", required=True, help="Identity authorizing the change")
    set_min.add_argument("--block", type=int, default=0, help="Current block height")

    serve = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, help="Bind port (default: PORT setting)")

    return parser.parse_args(argv)


def _print_record(label: str, record) -> None:
    if record is None:
        print(f"{label}: not found")
        return
    print(f"{label}:")
    for field, value in record.model_dump().items():
        if hasattr(value, "value"):
            value = value.value
        print(f"  {field}: {value}")


async def _show(coordinator: BackupCoordinator, args: Namespace) -> None:
    print(f"next_backup_id: {await coordinator.get_next_backup_id()}")
    print(f"next_restore_id: {await coordinator.get_next_restore_id()}")
    print(f"min_backup_replicas: {await coordinator.get_min_backup_replicas()}")

    for node_id in args.node:
        _print_record(f"node {node_id}", await coordinator.get_node(node_id))
    for backup_id in args.backup:
        _print_record(f"backup {backup_id}", await coordinator.get_backup_request(backup_id))
        for assignment in await coordinator.list_assignments(backup_id):
            _print_record(f"  assignment {assignment.node_id}", assignment)
    for restore_id in args.restore:
        _print_record(f"restore {restore_id}", await coordinator.get_restore_request(restore_id))
    if args.active_nodes:
        nodes = await coordinator.list_active_nodes()
        print(f"active nodes ({len(nodes)}):")
        for node in nodes:
            print(f"  {node.node_id}: {node.used_capacity}/{node.storage_capacity} used")


async def async_main(args: Namespace, settings: Settings) -> int:
    """Run a database-backed command.

    Returns:
        Exit code: 0 (success), 1 (rejected by the coordinator)
    """
    engine = create_engine(settings.database_url, settings.db_pool_size)
    try:
        if args.command == "init-db":
            await create_tables(engine)
            logger.info("cli.tables_created", db_url=settings.database_url.split("@")[-1])
            return 0

        coordinator = BackupCoordinator.from_settings(
            settings, create_uow_factory(create_session_factory(engine))
        )

        if args.command == "show":
            await _show(coordinator, args)
            return 0

        ctx = ExecutionContext(caller=args.caller, block_height=args.block)
        try:
            value = await coordinator.set_min_backup_replicas(ctx, args.value)
        except CoordinatorError as e:
            logger.error("cli.rejected", kind=e.kind.value, code=e.code, reason=e.message)
            return 1
        print(f"min_backup_replicas: {value}")
        return 0
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = parse_args(argv)

    settings = Settings()  # type: ignore[call-arg]
    if args.verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)

    if args.command == "serve":
        import uvicorn

        from backup_coordinator.app import create_app

        uvicorn.run(
            create_app(settings),
            host=args.host or settings.host,
            port=args.port or settings.port,
        )
        return 0

    return asyncio.run(async_main(args, settings))
