from courtshare.db.base import Base, TimestampMixin, UTCDateTime

__all__ = ["Base", "TimestampMixin", "UTCDateTime"]
