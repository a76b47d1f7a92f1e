import pytest

from roomix.domain.common.exceptions import Unauthorized
from roomix.domain.common.geo import GeoPoint
from roomix.domain.directory import policy
from roomix.domain.directory.models import Utility, UtilityCategory, Verification
from roomix.infra.auth import AuthenticatedUser

OWNER = AuthenticatedUser(id="owner")
STRANGER = AuthenticatedUser(id="stranger")
ADMIN = AuthenticatedUser(id="boss", roles=("admin",))


def _utility(**overrides) -> Utility:
	fields = dict(
		id="u1",
		name="Pharmacy",
		category=UtilityCategory.PHARMACY,
		location=GeoPoint(lon=0.0, lat=0.0),
		added_by="owner",
	)
	fields.update(overrides)
	return Utility(**fields)


@pytest.mark.parametrize(
	"actor,allowed",
	[(OWNER, True), (ADMIN, True), (STRANGER, False)],
)
def test_authorize_mutation_matrix(actor, allowed):
	assert policy.authorize_mutation(_utility(), actor) is allowed


def test_ensure_can_mutate_raises_for_strangers():
	with pytest.raises(Unauthorized) as exc:
		policy.ensure_can_mutate(_utility(), STRANGER)
	assert exc.value.reason == "not_owner"


def test_hidden_utility_visible_to_owner_and_admin_only():
	pending = _utility()
	assert policy.can_view(pending, OWNER)
	assert policy.can_view(pending, ADMIN)
	assert not policy.can_view(pending, STRANGER)
	assert not policy.can_view(pending, None)


def test_public_utility_visible_to_everyone():
	public = _utility(verification=Verification.verified())
	assert policy.can_view(public, None)
	assert policy.can_view(public, STRANGER)
	assert not policy.can_view(_utility(verification=Verification.verified(), is_active=False), STRANGER)
