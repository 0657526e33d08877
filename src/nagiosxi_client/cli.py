"""
Command-line interface for the Nagios XI client.

Usage (examples):
  - Connectivity check:
      nagiosxi --url https://nagios.local/nagiosxi --token KEY info

  - Create a host and apply configuration:
      nagiosxi host create --name web01 --address 10.0.0.1 \
        --max-check-attempts 5 --check-period 24x7 \
        --notification-interval 10 --notification-period 24x7 \
        --contact nagiosadmin --template generic-host --var _SITE=paris

  - Rename a host:
      nagiosxi host update web01 --name web02

URL and token may also come from nagiosxi.yml, NAGIOSXI_NAGIOS__URL /
NAGIOSXI_NAGIOS__TOKEN, NAGIOS_URL / API_TOKEN or a .env file.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .core.config import ConfigError, load_config, DEFAULT_FILES
from .core.errors import ApiError, ApplyConfigError, NagiosError, NotFoundError, TransportError
from .core.host import Host, HostAPI
from .core.logging_setup import build_logger
from .core.nagios_client import NagiosClient
from .core.params import bool_flag


EXIT_OK = 0
EXIT_API_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_NOT_FOUND = 3
EXIT_NETWORK_ERROR = 4
EXIT_APPLY_ERROR = 5


def _print_json(obj: Any) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _print_body(body: bytes) -> None:
    text = body.decode("utf-8", errors="replace").strip()
    if text:
        print(text)


def _parse_vars(items: Optional[List[str]]) -> Optional[Dict[str, str]]:
    if not items:
        return None
    out: Dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"--var expects KEY=VALUE, got '{item}'")
        out[key] = value
    return out


def _flag(value: Optional[bool]) -> str:
    return "" if value is None else bool_flag(value)


def _host_from_args(args: argparse.Namespace) -> Host:
    return Host(
        host_name=args.name or "",
        address=args.address or "",
        alias=args.alias or "",
        display_name=args.display_name or "",
        max_check_attempts=args.max_check_attempts or "",
        check_period=args.check_period or "",
        notification_interval=args.notification_interval or "",
        notification_period=args.notification_period or "",
        check_command=args.check_command or "",
        contacts=args.contact,
        templates=args.template,
        contact_groups=args.contact_group,
        active_checks_enabled=_flag(args.active_checks),
        passive_checks_enabled=_flag(args.passive_checks),
        notifications_enabled=_flag(args.notifications),
        free_variables=_parse_vars(args.var),
    )


def _add_host_fields(p: argparse.ArgumentParser) -> None:
    p.add_argument("--name", help="host_name")
    p.add_argument("--address", help="IP address or FQDN")
    p.add_argument("--alias")
    p.add_argument("--display-name")
    p.add_argument("--max-check-attempts")
    p.add_argument("--check-period")
    p.add_argument("--notification-interval")
    p.add_argument("--notification-period")
    p.add_argument("--check-command")
    p.add_argument("--contact", action="append", help="Contact (repeatable)")
    p.add_argument("--template", action="append", help="Host template, 'use' (repeatable)")
    p.add_argument("--contact-group", action="append", help="Contact group (repeatable)")
    p.add_argument("--var", action="append", metavar="KEY=VALUE", help="Free variable (repeatable)")
    p.add_argument("--active-checks", action=argparse.BooleanOptionalAction, default=None)
    p.add_argument("--passive-checks", action=argparse.BooleanOptionalAction, default=None)
    p.add_argument("--notifications", action=argparse.BooleanOptionalAction, default=None)


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="nagiosxi", description="Nagios XI API client")

    # Nagios / HTTP
    p.add_argument("--url", default="", help="Nagios XI base URL")
    p.add_argument("--token", default="", help="Nagios XI API key")
    p.add_argument("--insecure", action="store_true", help="Do not verify TLS certificates")
    p.add_argument("--config", default="", help="YAML configuration file")

    # Logging
    p.add_argument("--logs-dir", default="", help="Logs base directory")
    p.add_argument("--console-level", default="", help="Console log level (DEBUG..CRITICAL)")
    p.add_argument("--file-level", default="", help="File log level (DEBUG..CRITICAL)")
    p.add_argument("--log-file", action="store_true", help="Also write logs/app.log")

    sub = p.add_subparsers(dest="cmd", required=True)
    sub.add_parser("info", help="Show Nagios XI product and version")
    sub.add_parser("applyconfig", help="Apply pending configuration")

    host = sub.add_parser("host", help="Manage hosts")
    hsub = host.add_subparsers(dest="host_cmd", required=True)

    g = hsub.add_parser("get", help="Show a host")
    g.add_argument("host_name")

    c = hsub.add_parser("create", help="Create a host and apply configuration")
    _add_host_fields(c)

    u = hsub.add_parser("update", help="Update a host and apply configuration")
    u.add_argument("current_name", help="Current host_name of the host to update")
    _add_host_fields(u)

    d = hsub.add_parser("delete", help="Delete a host and apply configuration")
    d.add_argument("host_name")

    return p


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "nagios": {
            "url": args.url,
            "token": args.token,
            "verify_tls": False if args.insecure else None,
        },
        "logging": {
            "base_dir": args.logs_dir,
            "console_level": args.console_level,
            "file_level": args.file_level,
            "to_file": True if args.log_file else None,
        },
    }


def _action_name(args: argparse.Namespace) -> Tuple[str, str]:
    if args.cmd == "host":
        name = getattr(args, "host_name", None) or getattr(args, "current_name", None) or getattr(args, "name", None)
        return f"host-{args.host_cmd}", name or "-"
    return args.cmd, "-"


def _run(args: argparse.Namespace, client: NagiosClient) -> int:
    if args.cmd == "info":
        _print_json(client.system_info())
        return EXIT_OK

    if args.cmd == "applyconfig":
        _print_body(client.apply_config())
        return EXIT_OK

    hosts = HostAPI(client)
    if args.host_cmd == "get":
        _print_json(dataclasses.asdict(hosts.get(args.host_name)))
    elif args.host_cmd == "create":
        _print_body(hosts.create(_host_from_args(args)))
    elif args.host_cmd == "update":
        _print_body(hosts.update(_host_from_args(args), args.current_name))
    elif args.host_cmd == "delete":
        _print_body(hosts.delete(args.host_name))
    return EXIT_OK


def main(argv: Iterable[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    files = (args.config,) if args.config else DEFAULT_FILES
    try:
        cfg = load_config(_cli_overrides(args), files=files)
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    action, obj = _action_name(args)
    logger = build_logger(
        run_id=cfg.run_id,
        action=action,
        base_dir=cfg.logging.base_dir,
        console_level=cfg.logging.console_level,
        file_level=cfg.logging.file_level,
        to_file=cfg.logging.to_file,
        extra={"object": obj},
    )
    logger.info("Starting %s", action)

    try:
        with NagiosClient(cfg.nagios.url, cfg.nagios.token, verify_tls=cfg.nagios.verify_tls) as client:
            code = _run(args, client)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
        return EXIT_CONFIG_ERROR  # pragma: no cover
    except NotFoundError as exc:
        logger.error("%s", exc)
        return EXIT_NOT_FOUND
    except ApplyConfigError as exc:
        logger.error("%s", exc)
        return EXIT_APPLY_ERROR
    except TransportError as exc:
        logger.error("%s", exc)
        return EXIT_NETWORK_ERROR
    except ApiError as exc:
        logger.error("Nagios error: %s", exc)
        _print_body(exc.body)
        return EXIT_API_ERROR
    except NagiosError as exc:
        logger.error("%s", exc)
        return EXIT_API_ERROR

    logger.info("Finished %s", action)
    return code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
