import logging

from pydantic import ValidationError


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s] : %(message)s',
    )


def format_validation_error(ex: ValidationError) -> str:
    msg = []
    for err in ex.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "<root>"
        msg.append(f"  {loc}: {err['msg']}")
    return "\n".join(msg)
