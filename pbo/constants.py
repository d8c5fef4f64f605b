# Name field: NUL-terminated, must terminate within this many bytes
MAX_NAME_LEN = 512
NAME_ENCODING = "utf-8"
NAME_ERRORS = "surrogateescape"

# Packing method tags (opaque, never interpreted beyond these two)
PACKING_STORED = 0
PACKING_VERSIONED = 0x56657273  # b"sreV" on disk, "Vers" read little-endian

# Property block: five little-endian u32 fields
PROPERTY_COUNT = 5

U32_MAX = 0xFFFFFFFF

# Trailing SHA-1 over header + data
DIGEST_SIZE = 20

ARCHIVE_SEP = "\\"

COPY_BUFFER_SIZE = 1_048_576  # 1 MiB
