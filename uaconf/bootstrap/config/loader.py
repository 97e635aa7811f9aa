import argparse
from pathlib import Path

from uaconf.bootstrap.config.settings import UaSettings
from uaconf.core.models.security import SecurityMode, SecurityPolicy

PRESETS = ("anonymous", "user-pass", "sample")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uactl",
        description=(
            "Create, validate and inspect the security and network configuration\n"
            "of an OPC UA server."
        ),
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help=(
            "Path to the server configuration file.\n"
            "Defaults to $UACONF_CONFIG_FILE, then ./uaserver.yaml."
        )
    )

    parser.add_argument(
        "-l", "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=(
            "Logging verbosity.\n"
            "Defaults to $UACONF_LOG_LEVEL, then INFO."
        ),
    )

    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Write a preset configuration file.")
    init.add_argument(
        "--preset",
        choices=PRESETS,
        default="anonymous",
        help=(
            "anonymous → no security, anonymous access only (default).\n"
            "user-pass → no security, user / password access.\n"
            "sample    → anonymous plus built-in sample credentials.\n"
            "            Never use it in production."
        ),
    )
    init.add_argument("--user", type=str, help="User name for the user-pass preset.")
    init.add_argument("--password", type=str, help="Password for the user-pass preset.")
    init.add_argument(
        "--security-policy",
        type=SecurityPolicy,
        choices=list(SecurityPolicy),
        default=None,
        help=(
            "Security policy of the user-pass endpoint (default: None).\n"
            "An endpoint without security must allow anonymous access,\n"
            "so user-pass needs a policy other than None."
        ),
    )
    init.add_argument(
        "--security-mode",
        type=SecurityMode,
        choices=list(SecurityMode),
        default=None,
        help="Security mode of the user-pass endpoint (default: None).",
    )
    init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the configuration file if it already exists."
    )

    sub.add_parser("validate", help="Load the configuration and report every violation.")
    sub.add_parser("show", help="Load the configuration and print it as YAML.")

    return parser


def get_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "init" and args.preset == "user-pass" and not (args.user and args.password):
        parser.error("--user and --password are required with --preset user-pass")

    if args.command == "init" and args.preset != "user-pass":
        given = [
            option
            for option, value in (
                ("--user", args.user),
                ("--password", args.password),
                ("--security-policy", args.security_policy),
                ("--security-mode", args.security_mode),
            )
            if value is not None
        ]
        if given:
            parser.error(f"{', '.join(given)} only apply to --preset user-pass")

    return args


def get_configfile(args: argparse.Namespace, settings: UaSettings) -> Path:
    # Priority: CLI > ENV > default file in current working directory
    if args.config:
        return Path(args.config).expanduser()
    return settings.config_file.expanduser()
