class LyricSyncError(Exception):
    pass


class RepairError(LyricSyncError):
    """A repaired sheet failed validation and must not be persisted."""
