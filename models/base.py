from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class RunStatus(str, enum.Enum):
    """Terminal state of a harvest run"""
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FATAL = "fatal"


class FailurePolicy(str, enum.Enum):
    """What the availability phase does when a pair exhausts its retries"""
    SKIP = "skip"
    ABORT = "abort"
