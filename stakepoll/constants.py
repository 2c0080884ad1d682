"""
StakePoll Constants

This module consolidates the protocol constants of the staking/poll contract
and the environment configuration used by the logging layer. Constants are
organized by category for easy reference and maintenance.
"""
import ast
import re
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE VALUES BELOW ARE PART OF THE CONTRACT'S OBSERVABLE BEHAVIOUR. CHANGING THEM CHANGES
# HOW EXISTING POLLS AND STAKES ARE INTERPRETED.

# ==================================================================================
# TOKEN CUSTODY
# ==================================================================================
VOTING_TOKEN = 'voting_token'
MIN_STAKE_AMOUNT = 1  # Smallest stake accepted, in base units of the denom

UINT64_MAX = 2 ** 64 - 1
UINT128_MAX = 2 ** 128 - 1


# ==================================================================================
# POLLS
# ==================================================================================
DEFAULT_END_HEIGHT_BLOCKS = 100_800  # ~7 days at 6s blocks
MIN_DESC_LENGTH = 3
MAX_DESC_LENGTH = 64
MAX_QUORUM_PERCENTAGE = 100

VOTE_YES = 'yes'

REJECTED_QUORUM = 'Quorum not reached'
REJECTED_THRESHOLD = 'Threshold not reached'


# ==================================================================================
# STORAGE LAYOUT
# ==================================================================================
CONFIG_KEY = b'config'
BANK_NAMESPACE = b'bank'
POLL_NAMESPACE = b'polls'


# ==================================================================================
# VALIDATION PATTERNS
# ==================================================================================
# Lowercase bech32-style account identifiers (human readable part + data)
VALID_ADDRESS_PATTERN = re.compile(r'^[a-z0-9]{3,90}$')


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    def __hash__(self):
        return hash(bool(self))


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in LOGGER_DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
