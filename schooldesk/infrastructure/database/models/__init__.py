from .record_model import RecordModel

__all__ = ["RecordModel"]
