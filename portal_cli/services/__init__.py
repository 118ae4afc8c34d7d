from portal_cli.services.audit import AuditLog
from portal_cli.services.feedback import FeedbackStore
from portal_cli.services.identity import (
    FileSessionSlot,
    IdentityService,
    MemorySessionSlot,
    SessionSlot,
)
from portal_cli.services.materials import MaterialsRepository, encode_payload
from portal_cli.services.profiles import ProfileComposer
from portal_cli.services.registry import AcademicRegistry
from portal_cli.services.results import ResultsEngine

__all__ = [
    "AcademicRegistry",
    "AuditLog",
    "FeedbackStore",
    "FileSessionSlot",
    "IdentityService",
    "MaterialsRepository",
    "MemorySessionSlot",
    "ProfileComposer",
    "ResultsEngine",
    "SessionSlot",
    "encode_payload",
]
