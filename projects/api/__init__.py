# Explicit re-exports for router imports like:
#   from projects.api import ProjectViewSet, ...

from .filters import SavedFilterViewSet
from .labels import LabelViewSet
from .projects import ProjectViewSet
from .reactions import ReactionViewSet
from .sharing import LinkShareViewSet, ProjectUserViewSet, TeamProjectViewSet
from .tasks import TaskCommentViewSet, TaskLabelViewSet, TaskViewSet
from .teams import TeamMemberViewSet, TeamViewSet
from .webhooks import WebhookViewSet

__all__ = [
    "ProjectViewSet",
    "ProjectUserViewSet",
    "TeamProjectViewSet",
    "LinkShareViewSet",
    "WebhookViewSet",
    "TeamViewSet",
    "TeamMemberViewSet",
    "TaskViewSet",
    "TaskCommentViewSet",
    "TaskLabelViewSet",
    "LabelViewSet",
    "SavedFilterViewSet",
    "ReactionViewSet",
]
