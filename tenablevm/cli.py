"""Command-line helper for Tenable VM users, roles and groups.

This module serves as a CLI wrapper around tenablevm.core services.
Every user mutation is written to the audit trail (see tenablevm.audit).
"""
from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from typing import Any, NoReturn

from tenablevm import audit
from tenablevm.config import ConfigurationError, load_settings
from tenablevm.core.tenable import (
    GroupService,
    PartialCreateError,
    RoleService,
    TenableClient,
    TenableError,
    UserService,
)
from tenablevm.core.user_resource import UserChanges, UserReconciler

LOOKUP_COMMANDS = ("list-users", "list-roles", "list-groups", "get-user", "get-role", "get-group")


def _emit(value: Any) -> None:
    if isinstance(value, list):
        payload = [item.to_dict() for item in value]
    else:
        payload = value.to_dict()
    print(json.dumps(payload, indent=2))


def _optional_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "1"):
        return True
    if lowered in ("false", "no", "0"):
        return False
    raise argparse.ArgumentTypeError(f"expected true/false, got {value!r}")


def _abort(cmd: str, error: Exception) -> NoReturn:
    print(f"[{cmd}] Error: {error}", file=sys.stderr)
    sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tenablevm-users", description="Tenable VM user management helper")
    parser.add_argument("--access-key", default=None,
                        help="API access key (default: TENABLE_ACCESS_KEY)")
    parser.add_argument("--secret-key", default=None,
                        help="API secret key (default: TENABLE_SECRET_KEY)")
    parser.add_argument("--base-url", default=None,
                        help="API base URL (default: TENABLE_BASE_URL or https://cloud.tenable.com)")
    parser.add_argument("--operator", default=os.environ.get("USER", "automation"),
                        help="Operator identifier for audit logs")
    parser.add_argument("--audit-dir", default=None,
                        help="Audit trail directory (default: AUDIT_LOG_DIR or .runtime/audit)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("list-users")
    sub.add_parser("list-roles")
    sub.add_parser("list-groups")

    gu = sub.add_parser("get-user")
    gu.add_argument("--id")
    gu.add_argument("--username")

    gr = sub.add_parser("get-role")
    gr.add_argument("--id")
    gr.add_argument("--name")

    gg = sub.add_parser("get-group")
    gg.add_argument("--id")
    gg.add_argument("--name")

    env_password = os.environ.get("TENABLE_USER_PASSWORD")
    cu = sub.add_parser("create-user")
    cu.add_argument("--username", required=True)
    cu.add_argument("--password", default=env_password, required=not env_password,
                    help="Initial password (default: TENABLE_USER_PASSWORD)")
    cu.add_argument("--permissions", type=int, required=True)
    cu.add_argument("--name")
    cu.add_argument("--email")
    cu.add_argument("--account-type", default="local")
    cu.add_argument("--disabled", action="store_true", help="Create the account disabled")

    uu = sub.add_parser("update-user")
    uu.add_argument("--id", required=True)
    uu.add_argument("--permissions", type=int)
    uu.add_argument("--name")
    uu.add_argument("--email", help='New email; "" clears it')
    uu.add_argument("--enabled", type=_optional_bool)

    for cmd in ("enable-user", "disable-user", "delete-user"):
        sp = sub.add_parser(cmd)
        sp.add_argument("--id", required=True)

    sub.add_parser("verify-audit", help="Check the signatures of the audit trail")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    trail = audit.AuditTrail(args.audit_dir)

    if args.cmd == "verify-audit":
        _verify_audit(trail)
        return

    if args.cmd == "create-user" and not args.password:
        parser.error("create-user needs a non-empty --password (or TENABLE_USER_PASSWORD)")

    try:
        config = load_settings(access_key=args.access_key, secret_key=args.secret_key, base_url=args.base_url)
    except ConfigurationError as e:
        parser.error(str(e))

    client = TenableClient(config)

    if args.cmd in LOOKUP_COMMANDS:
        try:
            _run_lookup(args, client)
        except TenableError as e:
            _abort(args.cmd, e)
        return

    _run_mutation(args, UserReconciler(client), trail)


def _run_lookup(args: argparse.Namespace, client: TenableClient) -> None:
    if args.cmd == "list-users":
        _emit(UserService(client).list_users())
    elif args.cmd == "list-roles":
        _emit(RoleService(client).list_roles())
    elif args.cmd == "list-groups":
        _emit(GroupService(client).list_groups())
    elif args.cmd == "get-user":
        _emit(UserService(client).find_user(user_id=args.id, username=args.username))
    elif args.cmd == "get-role":
        _emit(RoleService(client).find_role(role_id=args.id, name=args.name))
    elif args.cmd == "get-group":
        _emit(GroupService(client).find_group(group_id=args.id, name=args.name))


def _run_mutation(args: argparse.Namespace, reconciler: UserReconciler, trail: audit.AuditTrail) -> None:
    op = args.operator

    if args.cmd == "create-user":
        try:
            user = reconciler.create(
                args.username, args.password, args.permissions,
                name=args.name, email=args.email,
                account_type=args.account_type, enabled=not args.disabled,
            )
        except PartialCreateError as e:
            trail.write(audit.partially_created(e, op))
            _abort(args.cmd, e)
        except TenableError as e:
            trail.write(audit.failed("create", op, e, username=args.username))
            _abort(args.cmd, e)
        trail.write(audit.created(user, op))
        _emit(user)

    elif args.cmd == "update-user":
        changes = UserChanges(
            permissions=args.permissions, name=args.name, email=args.email, enabled=args.enabled,
        )
        try:
            user = reconciler.update(args.id, **{f: getattr(changes, f) for f in changes.changed_fields()})
        except TenableError as e:
            trail.write(audit.failed("update", op, e, user_id=args.id, changes=changes))
            _abort(args.cmd, e)
        trail.write(audit.updated(user, changes, op))
        _emit(user)

    elif args.cmd in ("enable-user", "disable-user"):
        enabled = args.cmd == "enable-user"
        try:
            reconciler.set_enabled(args.id, enabled)
        except TenableError as e:
            trail.write(audit.failed("enable" if enabled else "disable", op, e, user_id=args.id))
            _abort(args.cmd, e)
        trail.write(audit.toggled(args.id, enabled, op))

    elif args.cmd == "delete-user":
        try:
            reconciler.delete(args.id)
        except TenableError as e:
            trail.write(audit.failed("delete", op, e, user_id=args.id))
            _abort(args.cmd, e)
        trail.write(audit.deleted(args.id, op))


def _verify_audit(trail: audit.AuditTrail) -> None:
    report = trail.verify()
    print(f"{report.valid}/{report.total} audit records carry a valid signature "
          f"({report.unsigned} unsigned)")
    for lineno in report.bad_lines:
        print(f"  line {lineno}: signature mismatch or malformed record", file=sys.stderr)
    if not report.intact:
        sys.exit(1)


if __name__ == "__main__":
    main()
