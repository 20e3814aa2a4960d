"""
Error taxonomy for the permission core and the grant services.

Overview
--------
Every error is a DRF `APIException` so views can let it propagate and DRF renders
it with the right status. The body is `{"detail": <message>, "code": <int>}`,
where `code` is a stable numeric `error_code` clients can switch on.

Forbidden is not an error here: guards answer with booleans and
the caller decides between 403 and 404. `GenericForbidden` exists only for the
cross-cutting cases (re-parenting into a project you cannot write) where the
check happens deep inside an update.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import APIException


class AccessError(APIException):
    """Base class; subclasses set `status_code`, `default_detail`, `error_code`."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request."
    default_code = "invalid"
    error_code = 0

    def __init__(self, detail: str | None = None):
        self.message = detail or str(self.default_detail)
        super().__init__(self.message, self.default_code)
        # DRF renders a dict detail as-is; keep `code` an int.
        self.detail = {"detail": self.detail, "code": self.error_code}

    def __str__(self) -> str:
        return self.message


# -- not found -----------------------------------------------------------------

class NotFoundError(AccessError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"


class UserDoesNotExist(NotFoundError):
    error_code = 1005
    default_detail = "The user does not exist."


class ProjectDoesNotExist(NotFoundError):
    error_code = 3001
    default_detail = "The project does not exist."

    def __init__(self, project_id: int | None = None):
        self.project_id = project_id
        super().__init__(f"The project {project_id} does not exist." if project_id else None)


class ShareDoesNotExist(NotFoundError):
    error_code = 3006
    default_detail = "The link share does not exist."


class TaskDoesNotExist(NotFoundError):
    error_code = 4002
    default_detail = "The task does not exist."


class TaskCommentDoesNotExist(NotFoundError):
    error_code = 4015
    default_detail = "The task comment does not exist."


class TeamDoesNotExist(NotFoundError):
    error_code = 6002
    default_detail = "The team does not exist."


class TeamDoesNotHaveAccessToProject(NotFoundError):
    error_code = 6007
    default_detail = "The team does not have access to the project."


class UserDoesNotHaveAccessToProject(NotFoundError):
    error_code = 7003
    default_detail = "The user does not have access to the project."


class LabelDoesNotExist(NotFoundError):
    error_code = 8002
    default_detail = "The label does not exist."


class SavedFilterDoesNotExist(NotFoundError):
    error_code = 11001
    default_detail = "The saved filter does not exist."


# -- conflicts -----------------------------------------------------------------

class ConflictError(AccessError):
    status_code = status.HTTP_409_CONFLICT
    default_code = "conflict"


class TeamAlreadyHasAccess(ConflictError):
    error_code = 6004
    default_detail = "The team already has access to the project."


class UserIsMemberOfTeam(ConflictError):
    error_code = 6005
    default_detail = "The user is already a member of the team."


class UserAlreadyHasAccess(ConflictError):
    error_code = 7002
    default_detail = "The user already has access to the project."


class LabelIsAlreadyOnTask(ConflictError):
    error_code = 8001
    default_detail = "The label already exists on the task."


# -- validation ----------------------------------------------------------------

class TeamNameCannotBeEmpty(AccessError):
    error_code = 6001
    default_detail = "The team name cannot be empty."


class CannotDeleteLastTeamMember(AccessError):
    error_code = 6006
    default_detail = "You cannot delete the last member of a team."


class InvalidPermission(AccessError):
    error_code = 9001
    default_detail = "The permission is invalid."

    def __init__(self, value=None):
        self.value = value
        super().__init__(f"The permission {value!r} is invalid." if value is not None else None)


# -- state / forbidden ---------------------------------------------------------

class ProjectIsArchived(AccessError):
    """Raised on writes below an archived project; `project_id` is the archived one."""

    status_code = status.HTTP_412_PRECONDITION_FAILED
    default_code = "project_archived"
    error_code = 3008
    default_detail = "The project is archived and cannot be modified."

    def __init__(self, project_id: int):
        self.project_id = project_id
        super().__init__(f"The project {project_id} is archived and cannot be modified.")


class GenericForbidden(AccessError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "forbidden"
    error_code = 0
    default_detail = "You are not allowed to do this."
