"""
Inkpost API: Authorization Policies
=====================================

What:  Pure predicates deciding whether an acting user may perform an action
       on a resource.
How:   A lookup table keyed by (resource kind, action). Each rule receives the
       actor id and the resource owner id and returns a bool. Pairs missing
       from the table are denied.
Who:   PostService and CommentService call `authorize()` before mutating.

Rules:
    post    view / viewAny / create  → any authenticated user
    post    update / delete          → owner only
    comment view / viewAny / create  → any authenticated user
    comment update / delete          → owner only

There is no soft delete, so `restore` / `forceDelete` have no entry and are
always denied.
"""

from typing import Callable, Dict, Optional, Tuple

from app.exceptions import AuthorizationError

Rule = Callable[[int, Optional[int]], bool]

POST = "post"
COMMENT = "comment"


def _anyone(actor_id: int, owner_id: Optional[int]) -> bool:
    return True


def _owner_only(actor_id: int, owner_id: Optional[int]) -> bool:
    return owner_id is not None and actor_id == owner_id


POLICIES: Dict[Tuple[str, str], Rule] = {
    (POST, "view"): _anyone,
    (POST, "viewAny"): _anyone,
    (POST, "create"): _anyone,
    (POST, "update"): _owner_only,
    (POST, "delete"): _owner_only,
    (COMMENT, "view"): _anyone,
    (COMMENT, "viewAny"): _anyone,
    (COMMENT, "create"): _anyone,
    (COMMENT, "update"): _owner_only,
    (COMMENT, "delete"): _owner_only,
}


def can(actor_id: int, action: str, kind: str, owner_id: Optional[int] = None) -> bool:
    """Returns True when `actor_id` may perform `action` on a `kind` resource owned by `owner_id`."""
    rule = POLICIES.get((kind, action))
    if rule is None:
        return False
    return rule(actor_id, owner_id)


def authorize(actor_id: int, action: str, kind: str, owner_id: Optional[int] = None) -> None:
    """
    Raises AuthorizationError (→ 403) when `can()` denies the action.

    Callers run this before touching the store, so a denied request leaves
    the resource unchanged.
    """
    if not can(actor_id, action, kind, owner_id):
        raise AuthorizationError(
            context={"actor_id": actor_id, "action": action, "kind": kind, "owner_id": owner_id}
        )
