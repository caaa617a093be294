# =============================================================================
# Resub -- Package Logger
# =============================================================================

import logging

logger = logging.getLogger("resub")
