#!/usr/bin/env python3
"""
Command-line front end for profile synchronization.

Every command prints the resulting profile (or command result) as JSON.

Usage:
    python main.py show [--user ID]
    python main.py social add telegram @my_handle
    python main.py phone set tj +992912345678
    python main.py gallery upload photo1.jpg photo2.png
"""

import argparse
import json
import sys
from typing import Any, List, Optional

from profile_sync.config import get_settings
from profile_sync.errors import (
    EXIT_CONFIG_ERROR,
    EXIT_SUCCESS,
    ProfileSyncError,
    fatal_error,
)
from profile_sync.models import AddressValue, Education, PhoneType
from profile_sync.services import ApiClient, ProfileService, ReconcileResult
from profile_sync.utils.file_utils import save_json
from profile_sync.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and edit a marketplace profile")
    parser.add_argument("--config", help="JSON configuration file (default: environment and .env)")
    parser.add_argument("--token", help="Bearer token (default: AUTH_TOKEN)")
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")
    parser.add_argument("--output", help="Write the JSON result to this file instead of stdout")

    commands = parser.add_subparsers(dest="command", required=True)

    show = commands.add_parser("show", help="Show a profile")
    show.add_argument("--user", default="self", help="User id (default: the authenticated user)")

    name = commands.add_parser("name", help="Set the full name")
    name.add_argument("full_name", help="Surname, name and patronymic")

    specialties = commands.add_parser("specialties", help="Replace specialties by title")
    specialties.add_argument("titles", nargs="+")

    remote = commands.add_parser("remote", help="Set whether remote work is possible")
    remote.add_argument("enabled", choices=["on", "off"])

    social = commands.add_parser("social", help="Edit social networks").add_subparsers(dest="action", required=True)
    social_add = social.add_parser("add")
    social_add.add_argument("network")
    social_add.add_argument("handle", nargs="?", default="")
    social_update = social.add_parser("update")
    social_update.add_argument("id")
    social_update.add_argument("network")
    social_update.add_argument("handle")
    social.add_parser("remove").add_argument("id")
    social.add_parser("clear")
    social.add_parser("available", help="List networks that can still be added")

    address = commands.add_parser("address", help="Edit addresses").add_subparsers(dest="action", required=True)
    address_add = address.add_parser("add")
    _add_address_arguments(address_add)
    address_update = address.add_parser("update")
    address_update.add_argument("id")
    _add_address_arguments(address_update)
    address.add_parser("remove").add_argument("id")

    phone = commands.add_parser("phone", help="Edit phones").add_subparsers(dest="action", required=True)
    phone_set = phone.add_parser("set")
    phone_set.add_argument("type", choices=[t.value for t in PhoneType])
    phone_set.add_argument("number")
    phone.add_parser("remove").add_argument("type", choices=[t.value for t in PhoneType])

    education = commands.add_parser("education", help="Edit education").add_subparsers(dest="action", required=True)
    education_add = education.add_parser("add")
    _add_education_arguments(education_add)
    education_update = education.add_parser("update")
    education_update.add_argument("id")
    _add_education_arguments(education_update)
    education.add_parser("remove").add_argument("id")

    gallery = commands.add_parser("gallery", help="Edit work examples").add_subparsers(dest="action", required=True)
    gallery.add_parser("upload").add_argument("files", nargs="+")
    gallery.add_parser("remove").add_argument("image_id", type=int)
    gallery.add_parser("clear")

    commands.add_parser("rating", help="Recompute the rating from reviews")

    review = commands.add_parser("review", help="Reviews").add_subparsers(dest="action", required=True)
    review_create = review.add_parser("create")
    review_create.add_argument("master_id", help="Id of the reviewed master")
    review_create.add_argument("--rating", type=int, required=True)
    review_create.add_argument("--text", required=True)
    review_create.add_argument("--photo", action="append", default=[], help="Photo to attach (repeatable)")
    review_list = review.add_parser("list")
    review_list.add_argument("user_id")
    review_list.add_argument("--role", choices=["master", "client"], default="master")

    commands.add_parser("services", help="List services on the profile")

    commands.add_parser("avatar", help="Replace the profile photo").add_argument("file")

    return parser


def _add_address_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--province", type=int)
    parser.add_argument("--city", type=int)
    parser.add_argument("--suburb", type=int, action="append", default=[])
    parser.add_argument("--district", type=int, action="append", default=[])
    parser.add_argument("--settlement", type=int)
    parser.add_argument("--community", type=int)
    parser.add_argument("--village", type=int)


def _add_education_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--institution", required=True)
    parser.add_argument("--start", type=int, required=True, help="Start year")
    parser.add_argument("--end", type=int, help="End year")
    parser.add_argument("--current", action="store_true", help="Still studying")
    parser.add_argument("--occupation", type=int, help="Occupation id of the specialty")


def _address_value(args: argparse.Namespace) -> AddressValue:
    return AddressValue(
        province_id=args.province,
        city_id=args.city,
        suburb_ids=args.suburb,
        district_ids=args.district,
        settlement_id=args.settlement,
        community_id=args.community,
        village_id=args.village,
    )


def _education(args: argparse.Namespace, entry_id: str = "new") -> Education:
    return Education(
        id=entry_id,
        institution=args.institution,
        occupation_id=args.occupation,
        start_year=args.start,
        end_year=None if args.current else args.end,
        currently_studying=args.current,
    )


def _checked(result: ReconcileResult) -> None:
    if not result.ok:
        raise result.error


def run(args: argparse.Namespace, service: ProfileService) -> Any:
    """Execute one command and return what should be printed."""
    if args.command == "show":
        return service.load(args.user)

    profile = service.load()
    if not profile.id:
        raise ProfileSyncError("Could not load the authenticated profile")

    if args.command == "name":
        return service.update_full_name(args.full_name)
    if args.command == "specialties":
        return service.update_specialties(args.titles)
    if args.command == "remote":
        return service.set_can_work_remotely(args.enabled == "on")

    if args.command == "social":
        if args.action == "available":
            return service.available_social_networks()
        if args.action == "add":
            _checked(service.add_social_network(args.network, args.handle))
        elif args.action == "update":
            _checked(service.update_social_network(args.id, args.network, args.handle))
        elif args.action == "remove":
            _checked(service.remove_social_network(args.id))
        else:
            _checked(service.clear_social_networks())

    elif args.command == "address":
        if args.action == "add":
            _checked(service.add_address(_address_value(args)))
        elif args.action == "update":
            _checked(service.update_address(args.id, _address_value(args)))
        else:
            _checked(service.remove_address(args.id))

    elif args.command == "phone":
        phone_type = PhoneType(args.type)
        if args.action == "set":
            _checked(service.set_phone(phone_type, args.number))
        else:
            _checked(service.remove_phone(phone_type))

    elif args.command == "education":
        if args.action == "add":
            _checked(service.add_education(_education(args)))
        elif args.action == "update":
            _checked(service.update_education(args.id, _education(args, args.id)))
        elif not service.remove_education(args.id):
            raise ProfileSyncError(f"Could not remove education entry {args.id}")

    elif args.command == "gallery":
        if args.action == "upload":
            return service.upload_work_examples(args.files)
        if args.action == "remove":
            return service.remove_work_example(args.image_id)
        return service.clear_work_examples()

    elif args.command == "rating":
        return service.refresh_rating()

    elif args.command == "review":
        if args.action == "list":
            reviews = service.ratings.fetch_reviews(args.user_id, args.role)
            return [
                {**r.model_dump(mode="json"), "excerpt": service.ratings.excerpt(r)}
                for r in reviews
            ]
        return service.ratings.create_review(
            args.master_id, profile.id, args.rating, args.text, photos=args.photo
        )

    elif args.command == "services":
        return service.fetch_services()

    elif args.command == "avatar":
        return service.upload_avatar(args.file)

    return service.profile


def _to_json(result: Any) -> Any:
    if isinstance(result, list):
        return [_to_json(item) for item in result]
    if hasattr(result, "model_dump"):
        return result.model_dump(mode="json")
    return result


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI."""
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        fatal_error(str(e), EXIT_CONFIG_ERROR)

    level = args.log_level or ("DEBUG" if settings.debug else settings.log_level)
    setup_logging(level=level, log_file=settings.log_file)

    try:
        client = ApiClient(settings, token=args.token)
        result = run(args, ProfileService(client))
    except ProfileSyncError as e:
        fatal_error(e.message, e.exit_code)

    data = _to_json(result)
    if args.output:
        save_json(data, args.output)
        logger.info(f"Result saved to {args.output}")
    else:
        print(json.dumps(data, indent=2, ensure_ascii=False))
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
