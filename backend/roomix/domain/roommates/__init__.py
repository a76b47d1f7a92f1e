"""Roommate profiles and compatibility matching."""

from roomix.domain.roommates.service import RoommateService

__all__ = ["RoommateService"]
