from __future__ import annotations

import argparse
import getpass

from .auth_service import create_admin, reset_password
from .errors import HealthcareError
from .logging_setup import configure_logging
from .seed import init_db, seed_base
from .specialization_service import list_specializations
from .user_service import admin_list_users, list_doctors


def cmd_init(args: argparse.Namespace) -> None:
    init_db()
    seed_base()
    print("Database initialized and seed completed.")


def cmd_create_admin(args: argparse.Namespace) -> None:
    password = args.password or getpass.getpass("Password: ")
    user = create_admin(args.email, password, args.first_name, args.last_name)
    print(f"Admin created: {user['id']} | {user['email']}")


def cmd_list(args: argparse.Namespace) -> None:
    if args.entity == "users":
        for u in admin_list_users():
            print(f"{u['id']} | {u['email']} | {u['role']} | {u['status']}")
    elif args.entity == "doctors":
        for d in list_doctors(sort_by="name", include_inactive=True):
            specs = ", ".join(sp["name"] for sp in d["specializations"]) or "-"
            verified = "verified" if d["verified"] else "unverified"
            print(f"{d['id']} | {d['full_name']} | {specs} | {d['average_rating']} ({d['review_count']}) | {verified}")
    elif args.entity == "specializations":
        for sp in list_specializations():
            print(f"{sp['id']} | {sp['name']} | {sp['doctor_count']} doctors")


def cmd_reset_user(args: argparse.Namespace) -> None:
    password = args.password or getpass.getpass("New password: ")
    reset_password(args.email, password)
    print(f"Password reset and account reactivated: {args.email}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="healthcare", description="Healthcare platform maintenance CLI")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Create tables and load seed data")
    p_init.set_defaults(func=cmd_init)

    p_admin = sub.add_parser("create-admin", help="Create an administrator account")
    p_admin.add_argument("--email", required=True)
    p_admin.add_argument("--password", default=None, help="Prompted when omitted")
    p_admin.add_argument("--first-name", default="System")
    p_admin.add_argument("--last-name", default="Administrator")
    p_admin.set_defaults(func=cmd_create_admin)

    p_list = sub.add_parser("list", help="List entities")
    p_list.add_argument("entity", choices=["users", "doctors", "specializations"])
    p_list.set_defaults(func=cmd_list)

    p_reset = sub.add_parser("reset-user", help="Reset a user's password")
    p_reset.add_argument("email")
    p_reset.add_argument("--password", default=None, help="Prompted when omitted")
    p_reset.set_defaults(func=cmd_reset_user)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging()
    init_db()  # make sure tables exist
    try:
        args.func(args)
    except HealthcareError as exc:
        print(f"Error: {exc.message}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
