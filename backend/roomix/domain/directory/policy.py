"""Visibility and mutation guards for directory entries."""

from __future__ import annotations

from typing import Optional

from roomix.domain.common.exceptions import Unauthorized
from roomix.domain.directory.models import Utility
from roomix.infra.auth import AuthenticatedUser


def is_privileged(actor: Optional[AuthenticatedUser]) -> bool:
	return actor is not None and actor.is_admin


def authorize_mutation(utility: Utility, actor: AuthenticatedUser) -> bool:
	"""Only the submitter or an admin may change a utility."""
	return str(actor.id) == str(utility.added_by) or actor.is_admin


def ensure_can_mutate(utility: Utility, actor: AuthenticatedUser) -> None:
	if not authorize_mutation(utility, actor):
		raise Unauthorized("not_owner")


def can_view(utility: Utility, actor: Optional[AuthenticatedUser]) -> bool:
	"""Public entries are visible to all; hidden ones to admins and their submitter."""
	if utility.is_public or is_privileged(actor):
		return True
	return actor is not None and str(actor.id) == str(utility.added_by)
