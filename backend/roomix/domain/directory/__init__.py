"""Campus directory: community utilities and universities."""

from roomix.domain.directory.service import UniversityService, UtilityService

__all__ = ["UniversityService", "UtilityService"]
