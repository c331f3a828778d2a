from types import SimpleNamespace

import pytest

from services.errors import PremiumRequiredError
from services.feature_gate import PREMIUM_FEATURES, can_access, entitlements, filter_accessible, require_premium


FREE_USER = SimpleNamespace(is_premium=False)
PREMIUM_USER = SimpleNamespace(is_premium=True)


@pytest.mark.parametrize("resource", [{"is_premium": False}, SimpleNamespace(is_premium=False), {}])
def test_free_resources_are_visible_to_everyone(resource):
    assert can_access(resource, None) is True
    assert can_access(resource, FREE_USER) is True
    assert can_access(resource, PREMIUM_USER) is True


def test_premium_resources_need_premium_user():
    resource = {"is_premium": True}
    assert can_access(resource, None) is False
    assert can_access(resource, FREE_USER) is False
    assert can_access(resource, {"is_premium": True}) is True
    assert can_access(resource, PREMIUM_USER) is True


def test_upgrading_never_hides_anything():
    resources = [{"id": index, "is_premium": index % 2 == 0} for index in range(6)]
    visible_free = {r["id"] for r in filter_accessible(resources, FREE_USER)}
    visible_premium = {r["id"] for r in filter_accessible(resources, PREMIUM_USER)}
    assert visible_free <= visible_premium
    assert visible_free == {1, 3, 5}
    assert visible_premium == set(range(6))


def test_require_premium_raises_structured_403():
    require_premium(PREMIUM_USER, "competitor_analysis")
    with pytest.raises(PremiumRequiredError) as exc_info:
        require_premium(FREE_USER, "competitor_analysis")
    assert exc_info.value.status_code == 403
    assert exc_info.value.detail["code"] == "premium_required"
    assert exc_info.value.detail["feature"] == "competitor_analysis"


def test_entitlements_follow_premium_flag():
    free = entitlements(FREE_USER)
    premium = entitlements(PREMIUM_USER)
    assert free["is_premium"] is False
    assert set(free["features"]) == set(PREMIUM_FEATURES)
    assert not any(free["features"].values())
    assert all(premium["features"].values())
