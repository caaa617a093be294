# =============================================================================
# Resub -- Protocol Constants
# =============================================================================
#
# Event names emitted by the transport and observer kinds exposed on
# subscription records.
# =============================================================================

# -- Transport events ----------------------------------------------------------

EVENT_READY = "ready"
EVENT_NOSUB = "nosub"
EVENT_CONNECTED = "connected"

# -- Message fields ------------------------------------------------------------

FIELD_SUBS = "subs"
FIELD_ID = "id"
FIELD_ERROR = "error"
FIELD_REASON = "reason"
FIELD_MESSAGE = "message"

# -- Observer kinds ------------------------------------------------------------

OBSERVE_READY = "ready"
OBSERVE_ERROR = "error"
OBSERVE_STOPPED = "stopped"

OBSERVER_KINDS = frozenset({OBSERVE_READY, OBSERVE_ERROR, OBSERVE_STOPPED})

# -- Defaults ------------------------------------------------------------------

DEFAULT_REPLAY_ON_CONNECT = True
