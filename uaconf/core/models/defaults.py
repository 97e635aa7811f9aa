from uaconf.core.models.security import SecurityMode, SecurityPolicy

DEFAULT_APPLICATION_NAME = "UAConf"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PKI_DIR = "pki"

DEFAULT_SERVER_PORT = 4855
DEFAULT_HELLO_TIMEOUT_SECONDS = 120

DEFAULT_MAX_ARRAY_LENGTH = 1000
DEFAULT_MAX_STRING_LENGTH = 65535
DEFAULT_MAX_BYTE_STRING_LENGTH = 65535

DEFAULT_ENDPOINT_NAME = "Default"
DEFAULT_ENDPOINT_PATH = "/"

DEFAULT_SECURITY_POLICY = SecurityPolicy.none
DEFAULT_SECURITY_MODE = SecurityMode.none

# Credentials enabled by the sample preset. Never use them in production.
SAMPLE_USER = "sample"
SAMPLE_PASSWORD = "sample1"

UINT16_MAX = (1 << 16) - 1
UINT32_MAX = (1 << 32) - 1
