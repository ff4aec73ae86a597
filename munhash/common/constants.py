"""Application constants."""

USER_AGENT = "munhash/1.0 (+municipality hash export)"
DEFAULT_SOURCE_URL = "https://www.gov.br/receitafederal/dados/municipios.csv"
DEFAULT_CACHE_FILENAME = "municipios.csv"
DEFAULT_OUTPUT_DIR_NAME = "mun_hash_por_uf"
DEFAULT_OUTPUT_PREFIX = "municipios_hash"

PBKDF2_ITERATIONS = 50_000
HASH_BYTES = 32

EXCLUDED_PARTITION_KEY = "EX"
CSV_DELIMITER = ";"
CSV_HEADER = ("TOM", "IBGE", "NomeTOM", "NomeIBGE", "UF", "Hash")
DOCUMENT_KEYS = ("Tom", "Ibge", "NomeTom", "NomeIbge", "Uf", "Hash")
SOURCE_FIELD_COUNT = 5

STAGES = (
    "fetch",
    "hash",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "partition",
    "record_id",
    "event",
    "status",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
