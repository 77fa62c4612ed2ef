"""Workflow - statuses, steps and transitions of an issue workflow."""

from tracklane.workflow.exceptions import (
    InvalidWorkflowError,
    StepNotFoundError,
    WorkflowError,
)
from tracklane.workflow.graph import Workflow, parse_workflow
from tracklane.workflow.models import (
    Status,
    StatusCategory,
    Transition,
    WorkflowStep,
    generate_id,
)
from tracklane.workflow.rules import (
    Condition,
    PostFunction,
    Validator,
    dump_rules,
    parse_conditions,
    parse_post_functions,
    parse_validators,
)

__all__ = [
    "Condition",
    "InvalidWorkflowError",
    "PostFunction",
    "Status",
    "StatusCategory",
    "StepNotFoundError",
    "Transition",
    "Validator",
    "Workflow",
    "WorkflowError",
    "WorkflowStep",
    "dump_rules",
    "generate_id",
    "parse_conditions",
    "parse_post_functions",
    "parse_validators",
    "parse_workflow",
]
