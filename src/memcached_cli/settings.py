DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 11211

# Applied to connect and to every single read/write, not to a whole
# multi-line reply.
DEFAULT_TIMEOUT_S = 1.0

DEFAULT_READ_BUFFER_SIZE = 4096

# Text protocol limits: keys are at most 250 bytes, flags are
# an unsigned 32 bit int and the <bytes> field is parsed as one too.
MAX_KEY_SIZE = 250
MAX_FLAGS = 2**32 - 1
MAX_VALUE_SIZE = 2**32 - 1

# Values longer than this are truncated when displayed.
DISPLAY_DATA_LENGTH = 320

DEFAULT_CACHEDUMP_SIZE = 20
