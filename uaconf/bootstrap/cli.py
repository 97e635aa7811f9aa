import argparse
import logging
from collections.abc import Callable
from pathlib import Path

import yaml

from uaconf.bootstrap.config.loader import get_cli_args, get_configfile
from uaconf.bootstrap.config.settings import UaSettings
from uaconf.core.errors import ConfigError
from uaconf.core.helpers.utils import setup_logging
from uaconf.core.models import defaults
from uaconf.core.models.config import ServerConfiguration

logger = logging.getLogger("bootstrap.cli")


def _load(path: Path) -> ServerConfiguration:
    try:
        return ServerConfiguration.load(path)
    except ConfigError as ex:
        raise SystemExit(f"[config] {ex}")


def cmd_init(args: argparse.Namespace, path: Path) -> int:
    if path.exists() and not args.force:
        raise SystemExit(
            f"[config] Configuration file already exists: '{path}'.\n"
            "  - Use --force to overwrite it."
        )

    if args.preset == "user-pass":
        config = ServerConfiguration.default_user_pass(
            args.user,
            args.password,
            args.security_policy or defaults.DEFAULT_SECURITY_POLICY,
            args.security_mode or defaults.DEFAULT_SECURITY_MODE,
        )
    elif args.preset == "sample":
        logger.warning("The sample preset enables sample credentials. Don't use it in production.")
        config = ServerConfiguration.default_sample()
    else:
        config = ServerConfiguration.default_anonymous()

    try:
        config.save(path)
    except ConfigError as ex:
        raise SystemExit(f"[config] {ex}")

    print(f"Wrote {args.preset} configuration to {path}")
    return 0


def cmd_validate(args: argparse.Namespace, path: Path) -> int:
    _ = args
    config = _load(path)
    violations = config.validate()
    if violations:
        print(f"Configuration {path} is invalid:")
        for violation in violations:
            print(f"  [{violation.code}] {violation}")
        return 1

    print(f"Configuration {path} is valid")
    return 0


def cmd_show(args: argparse.Namespace, path: Path) -> int:
    _ = args
    config = _load(path)
    print(yaml.safe_dump(config.to_dict(), sort_keys=False), end="")
    return 0


COMMANDS: dict[str, Callable[[argparse.Namespace, Path], int]] = {
    "init": cmd_init,
    "validate": cmd_validate,
    "show": cmd_show,
}


def main(argv: list[str] | None = None) -> int:
    args = get_cli_args(argv)
    settings = UaSettings()

    setup_logging(args.log_level or settings.log_level)

    path = get_configfile(args, settings)
    return COMMANDS[args.command](args, path)


if __name__ == "__main__":
    raise SystemExit(main())
