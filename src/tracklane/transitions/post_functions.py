"""PostFunctionRunner - side effects executed after a transition commits."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tracklane.transitions.models import PostFunctionReport
from tracklane.workflow.rules import (
    AddComment,
    AssignToLead,
    AssignToReporter,
    ClearField,
    SendNotification,
    SetField,
)

if TYPE_CHECKING:
    from tracklane.protocols import CommentSink, IssueFieldWriter, Notifier
    from tracklane.transitions.models import Actor, Issue
    from tracklane.workflow import PostFunction, Transition

logger = logging.getLogger(__name__)


class PostFunctionError(Exception):
    """A post-function could not be applied."""


class PostFunctionRunner:
    """Runs a transition's post-functions in order.

    Execution is best-effort: a failing post-function is logged and reported,
    and the remaining ones still run. The status change itself is never
    undone by a post-function failure.
    """

    def __init__(
        self,
        fields: IssueFieldWriter,
        comments: CommentSink | None = None,
        notifier: Notifier | None = None,
        project_lead: str | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            fields: Writer for issue field changes.
            comments: Sink for add_comment post-functions.
            notifier: Target for send_notification post-functions.
            project_lead: User assigned by assign_to_lead.
        """
        self.fields = fields
        self.comments = comments
        self.notifier = notifier
        self.project_lead = project_lead

    async def run(self, issue: Issue, transition: Transition, actor: Actor) -> PostFunctionReport:
        """Execute every post-function of ``transition`` for ``issue``."""
        report = PostFunctionReport()
        for post_function in transition.post_functions:
            try:
                await self._apply(post_function, issue, transition, actor)
            except Exception as e:
                logger.warning(
                    "Post-function %s failed for issue %s: %s",
                    post_function.type,
                    issue.id,
                    e,
                )
                report.failures.append(f"{post_function.type}: {e}")
            else:
                report.applied.append(post_function.type)
        return report

    async def _apply(
        self,
        post_function: PostFunction,
        issue: Issue,
        transition: Transition,
        actor: Actor,
    ) -> None:
        match post_function:
            case SetField(field=name, value=value):
                await self.fields.update_issue_fields(issue.id, {name: value})
            case ClearField(field=name):
                await self.fields.update_issue_fields(issue.id, {name: None})
            case AssignToLead():
                if not self.project_lead:
                    raise PostFunctionError("project has no lead")
                await self.fields.update_issue_fields(issue.id, {"assignee": self.project_lead})
            case AssignToReporter():
                if not issue.reporter:
                    raise PostFunctionError("issue has no reporter")
                await self.fields.update_issue_fields(issue.id, {"assignee": issue.reporter})
            case AddComment(comment=comment):
                if self.comments is None:
                    raise PostFunctionError("no comment sink configured")
                await self.comments.add_comment(issue.id, actor.id, comment)
            case SendNotification(comment=comment):
                if self.notifier is None:
                    raise PostFunctionError("no notifier configured")
                label = issue.key or issue.id
                message = comment or f"{label} moved via '{transition.name}'"
                self.notifier.emit_notification(issue.id, message, issue.project_id)
