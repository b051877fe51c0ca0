from byte_buffer.overflow import OverflowPolicy

#
# Demo Buffer
#

DEFAULT_VALUES = [0, 255, 127, 128]
DEFAULT_POLICY = OverflowPolicy.WRAP
AVAILABLE_POLICIES = [p.value for p in OverflowPolicy]

#
# Store Oracle
#

# Inclusive range checked by `verify`; spans both wrap boundaries twice.
ORACLE_LOW = -512
ORACLE_HIGH = 511

#
# Logging
#

LOGGER_NAME = "byte_buffer"
LOGGER_PREFIX = "BYTES"
