from enum import StrEnum


class SecurityPolicy(StrEnum):
    """
    Cryptographic algorithm suite protecting a session on an endpoint.
    The member values are the identifiers written to the configuration file.
    """
    none = "None"
    basic128rsa15 = "Basic128Rsa15"
    basic256 = "Basic256"
    basic256sha256 = "Basic256Sha256"


class SecurityMode(StrEnum):
    """
    Whether messages on a session are signed, signed and encrypted,
    or left unprotected.
    """
    none = "None"
    sign = "Sign"
    sign_and_encrypt = "SignAndEncrypt"


def valid_names(enum_cls: type[StrEnum]) -> str:
    return ", ".join(member.value for member in enum_cls)
