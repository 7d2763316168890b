"""Command line interface for backing up and restoring namespaces."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from .config import ConfigLoader, ConfigValidator, SnapshotConfig, load_config_from_args
from .kubectl import KubectlClient
from .progress import create_progress_tracker
from .registry import SnapshotRegistry
from .service import SnapshotService
from .storage import LocalBackupStorage
from .types import DuplicateApplicationError, RestoreReport, SnapshotError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kube-snapshot",
        description="Snapshot namespaced Kubernetes resources to JSON files and restore them",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Configuration
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument("--backup-root", help="Directory holding backup directories and the registry")
    parser.add_argument("--registry-file", help="Registry file (default: <backup-root>/registry.json)")

    # kubectl options
    parser.add_argument("--kubeconfig", help="Path to an alternate kubeconfig file")
    parser.add_argument("--context", help="Kubernetes context to use when executing kubectl commands")
    parser.add_argument("--timeout", type=int, help="Timeout in seconds for kubectl operations")
    parser.add_argument("--max-retries", type=int, help="Maximum number of retries for failed kubectl calls")

    # Progress and logging
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    parser.add_argument(
        "--silent-progress",
        action="store_true",
        help="Only log progress, don't show interactive progress",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    register = sub.add_parser("register", help="Register an application namespace")
    register.add_argument("name", help="Application name")
    register.add_argument("--namespace", required=True, help="Namespace the application runs in")

    backup = sub.add_parser("backup", help="Back up a registered application or a namespace")
    backup.add_argument("app_id", nargs="?", help="Registered application id (e.g. app_1)")
    backup.add_argument("--namespace", help="Back up this namespace directly instead of an application")
    backup.add_argument("--output-dir", help="Backup directory for --namespace backups")

    restore = sub.add_parser("restore", help="Restore a backup into a namespace")
    restore.add_argument("backup_id", nargs="?", help="Recorded backup id (e.g. backup_1)")
    restore.add_argument("--namespace", required=True, help="Target namespace (must exist)")
    restore.add_argument("--from-dir", help="Restore from this backup directory instead of a backup id")

    sub.add_parser("list", help="List registered applications and their backups")

    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "backup":
        if args.app_id and (args.namespace or args.output_dir):
            parser.error("backup takes either an app_id or --namespace with --output-dir, not both")
        if not args.app_id and not (args.namespace and args.output_dir):
            parser.error("backup needs an app_id, or both --namespace and --output-dir")

    if args.command == "restore":
        if args.backup_id and args.from_dir:
            parser.error("restore takes either a backup_id or --from-dir, not both")
        if not args.backup_id and not args.from_dir:
            parser.error("restore needs a backup_id or --from-dir")

    return args


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )


def build_service(config: SnapshotConfig) -> SnapshotService:
    kubectl_client = KubectlClient(
        kubeconfig=config.kubeconfig,
        context=config.context,
        timeout=config.timeout,
        max_retries=config.max_retries,
        backoff_base=config.backoff_base,
        backoff_max=config.backoff_max,
    )
    progress = create_progress_tracker(enabled=config.progress_enabled, silent=config.silent_progress)
    return SnapshotService(
        cluster=kubectl_client,
        registry=SnapshotRegistry(config.registry_path),
        backup_root=config.backup_root,
        storage=LocalBackupStorage(),
        progress=progress,
    )


def run_command(args: argparse.Namespace, service: SnapshotService) -> int:
    """Run one subcommand and print its outcome. Returns the exit code."""
    if args.command == "register":
        try:
            record = service.register_application(args.name, args.namespace)
        except DuplicateApplicationError as e:
            print(f"Application already registered as {e.existing_app_id}", file=sys.stderr)
            return 1
        print(f"app_id: {record.app_id}")
        return 0

    if args.command == "backup":
        if args.app_id:
            record = service.perform_backup(args.app_id)
            print(f"backup_id: {record.backup_id}")
            print(f"app_id: {record.app_id}")
            print(f"directory: {record.backup_dir}")
        else:
            backup_dir = service.create_backup_dir(args.output_dir)
            report = service.orchestrator.run_backup(args.namespace, backup_dir)
            print(f"Backed up {args.namespace} to {report['backup_dir']}: {report['written_count']} files written")
        return 0

    if args.command == "restore":
        if args.backup_id:
            report = service.restore_backup(args.backup_id, args.namespace)
        else:
            report = service.restore_directory(args.from_dir, args.namespace)
        print_restore_report(report)
        return 0

    if args.command == "list":
        applications = service.registry.list_applications()
        if not applications:
            print("No applications registered")
        for app in applications:
            print(f"{app.app_id}: {app.name} (namespace {app.namespace})")
            for backup in service.registry.list_backups(app.app_id):
                print(f"  {backup.backup_id}  {backup.created_at}  {backup.backup_dir}")
        return 0

    raise SnapshotError(f"Unknown command: {args.command}")


def print_restore_report(report: RestoreReport) -> None:
    print(f"Restore completed successfully into {report['namespace']}")
    for kind_result in report["kinds"]:
        if kind_result["created"] or kind_result["skipped"]:
            print(
                f"  {kind_result['kind']}: {len(kind_result['created'])} created, "
                f"{len(kind_result['skipped'])} already present"
            )
    print(f"Objects created: {report['created_count']}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = ConfigLoader().load_config(config_file=args.config)
        config = load_config_from_args(args, config)

        validator = ConfigValidator()
        errors = validator.validate_config(config)
        namespace = getattr(args, "namespace", None)
        if namespace:
            errors.extend(validator.validate_namespace(namespace))
        if errors:
            print("Configuration validation errors:", file=sys.stderr)
            for error in errors:
                print(f"  - {error}", file=sys.stderr)
            sys.exit(1)

        service = build_service(config)
        try:
            exit_code = run_command(args, service)
        finally:
            if service.orchestrator.progress is not None:
                service.orchestrator.progress.finish()

    except KeyboardInterrupt:
        print("\nCancelled by user", file=sys.stderr)
        sys.exit(130)

    except SnapshotError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
