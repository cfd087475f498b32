"""
Inkpost API: Authorization Policy Tests
=========================================

What we test:
    ✅ Anyone authenticated may view, list and create posts and comments
    ✅ Only the owner may update or delete
    ✅ Unknown actions (restore, forceDelete) are always denied
    ✅ authorize() raises AuthorizationError with the 403 message
"""

import pytest

from app import policies
from app.exceptions import AuthorizationError


class TestCan:

    @pytest.mark.parametrize("kind", [policies.POST, policies.COMMENT])
    @pytest.mark.parametrize("action", ["view", "viewAny", "create"])
    def test_open_actions_allow_any_user(self, kind, action):
        assert policies.can(1, action, kind, owner_id=2) is True

    @pytest.mark.parametrize("kind", [policies.POST, policies.COMMENT])
    @pytest.mark.parametrize("action", ["update", "delete"])
    def test_owner_actions_allow_owner(self, kind, action):
        assert policies.can(7, action, kind, owner_id=7) is True

    @pytest.mark.parametrize("kind", [policies.POST, policies.COMMENT])
    @pytest.mark.parametrize("action", ["update", "delete"])
    def test_owner_actions_deny_others(self, kind, action):
        assert policies.can(7, action, kind, owner_id=8) is False

    def test_owner_action_without_owner_is_denied(self):
        assert policies.can(7, "update", policies.POST, owner_id=None) is False

    @pytest.mark.parametrize("action", ["restore", "forceDelete"])
    def test_undefined_actions_are_denied_even_for_owner(self, action):
        assert policies.can(3, action, policies.POST, owner_id=3) is False


class TestAuthorize:

    def test_allowed_action_returns_none(self):
        assert policies.authorize(1, "delete", policies.COMMENT, owner_id=1) is None

    def test_denied_action_raises(self):
        with pytest.raises(AuthorizationError) as exc_info:
            policies.authorize(1, "delete", policies.COMMENT, owner_id=2)

        assert exc_info.value.message == "This action is unauthorized."
        assert exc_info.value.context["owner_id"] == 2
