"""Storage layer: record store and object-storage relocator."""

from .records import RecordStore
from .s3 import S3Relocator

__all__ = ["RecordStore", "S3Relocator"]
