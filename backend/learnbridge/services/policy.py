"""
Authorization policy: pure decisions over (actor, action, resource, context).

One table for both entry points:
  - admin: everything
  - resourceManager in the management context: review and manage any resource, manage modules
  - owner in the plain resource context: update/delete own resource
  - submit for review: students; direct upload: any authenticated user
  - anything else: denied

No database access here; callers load the resource and pass it in.
"""
import logging
from enum import Enum

from learnbridge.errors import AuthorizationError
from learnbridge.models.resource import STATUS_APPROVED, Resource
from learnbridge.models.user import ROLE_ADMIN, ROLE_RESOURCE_MANAGER, ROLE_STUDENT, User

logger = logging.getLogger(__name__)

MANAGER_ROLES = frozenset({ROLE_RESOURCE_MANAGER, ROLE_ADMIN})


class Action(str, Enum):
    SUBMIT = "submit"
    UPLOAD = "upload"
    APPROVE = "approve"
    REJECT = "reject"
    UPDATE = "update"
    DELETE = "delete"
    LIST_PENDING = "list_pending"
    VIEW_STATS = "view_stats"
    MANAGE_MODULES = "manage_modules"
    MANAGE_USERS = "manage_users"


class Context(str, Enum):
    RESOURCE = "resource"
    MANAGEMENT = "management"


# Actions a resourceManager may take through the management entry point, regardless of ownership
_MANAGEMENT_ACTIONS = frozenset({
    Action.APPROVE,
    Action.REJECT,
    Action.UPDATE,
    Action.DELETE,
    Action.LIST_PENDING,
    Action.VIEW_STATS,
})

# Actions an uploader may take on their own resource through the plain entry point
_OWNER_ACTIONS = frozenset({Action.UPDATE, Action.DELETE})


def is_admin(actor: User | None) -> bool:
    return actor is not None and actor.role == ROLE_ADMIN


def is_manager(actor: User | None) -> bool:
    """resourceManager-equivalent: resourceManager or admin."""
    return actor is not None and actor.role in MANAGER_ROLES


def is_owner(actor: User | None, resource: Resource | None) -> bool:
    return actor is not None and resource is not None and resource.uploaded_by == actor.id


def can_mutate(
    actor: User | None,
    action: Action,
    resource: Resource | None = None,
    context: Context = Context.RESOURCE,
) -> bool:
    if actor is None:
        return False
    if actor.role == ROLE_ADMIN:
        return True
    if action == Action.SUBMIT:
        return actor.role == ROLE_STUDENT
    if action == Action.UPLOAD:
        return True
    if action == Action.MANAGE_MODULES:
        return actor.role == ROLE_RESOURCE_MANAGER
    if context == Context.MANAGEMENT:
        return actor.role == ROLE_RESOURCE_MANAGER and action in _MANAGEMENT_ACTIONS
    return action in _OWNER_ACTIONS and is_owner(actor, resource)


def authorize(
    actor: User | None,
    action: Action,
    resource: Resource | None = None,
    context: Context = Context.RESOURCE,
) -> None:
    """Raise AuthorizationError unless can_mutate allows the action."""
    if can_mutate(actor, action, resource, context):
        return
    logger.info(
        "Denied %s (%s context) for user=%s role=%s resource=%s",
        action.value,
        context.value,
        getattr(actor, "id", None),
        getattr(actor, "role", None),
        getattr(resource, "id", None),
    )
    if context == Context.RESOURCE and action in _OWNER_ACTIONS:
        raise AuthorizationError(f"Not authorized to {action.value} this resource")
    raise AuthorizationError("Access denied. Insufficient permissions.")


def can_view(actor: User | None, resource: Resource) -> bool:
    """Approved resources are public; pending/rejected only for the uploader and managers."""
    if resource.status == STATUS_APPROVED:
        return True
    return is_manager(actor) or is_owner(actor, resource)
