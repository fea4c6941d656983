# Models package: import all models here so Alembic can discover them.

from planboard.models.user import User  # noqa: F401
from planboard.models.idea import Idea, Series  # noqa: F401
from planboard.models.workflow import Workflow, WorkflowColumn  # noqa: F401
from planboard.models.content import ContentCard  # noqa: F401
from planboard.models.audit import AuditEvent  # noqa: F401
