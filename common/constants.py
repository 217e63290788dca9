"""Project-wide constants (piece sizes, staging names, default limits)."""

STREAM_PIECE_SIZE_BYTES: int = 64 * 1024  # 64 KiB per read/write when streaming a chunk

DEFAULT_UPLOAD_DIR: str = "./uploads"
DEFAULT_MERGE_CONCURRENCY: int = 8
DEFAULT_SERVER_PORT: int = 3000

# Names starting with this prefix are never chunk blobs or final artifacts.
TEMP_NAME_PREFIX: str = "."
CHUNK_TEMP_SUFFIX: str = ".uploading"
ARTIFACT_TEMP_SUFFIX: str = ".merging"
