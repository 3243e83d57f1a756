from .checkpoint import CheckpointStore, CheckpointError, STAGES

__all__ = ["CheckpointStore", "CheckpointError", "STAGES"]
