"""Workflow graph - legal statuses and transitions for a project's issues."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from typing import Any

from tracklane.workflow.exceptions import InvalidWorkflowError, StepNotFoundError
from tracklane.workflow.models import Transition, WorkflowStep, generate_id
from tracklane.workflow.rules import (
    parse_conditions,
    parse_post_functions,
    parse_validators,
)

logger = logging.getLogger(__name__)


class Workflow:
    """An immutable workflow graph.

    Structural rules are checked once, here, when the graph is built:

    - at least one step, and exactly one initial step
    - step IDs unique, and each status placed on at most one step
    - every transition connects two steps of this workflow
    - a repeated (from, to) pair must carry a distinct name

    Queries never re-validate. Cycles are allowed (e.g. Done -> Reopened).

    Raises:
        InvalidWorkflowError: If any structural rule is violated.
    """

    def __init__(
        self,
        id: str,
        name: str,
        steps: Iterable[WorkflowStep],
        transitions: Iterable[Transition] = (),
        description: str | None = None,
        project_id: str | None = None,
        is_default: bool = False,
        is_active: bool = True,
        is_draft: bool = False,
        draft_of: str | None = None,
    ) -> None:
        self.id = id
        self.name = name
        self.description = description
        self.project_id = project_id
        self.is_default = is_default
        self.is_active = is_active
        self.is_draft = is_draft
        self.draft_of = draft_of

        self._steps = tuple(steps)
        self._transitions = tuple(transitions)

        self._steps_by_id: dict[str, WorkflowStep] = {}
        self._steps_by_status: dict[str, WorkflowStep] = {}
        self._outgoing: dict[str, list[Transition]] = {}
        self._initial_step = self._index_steps()
        self._index_transitions()

    def _index_steps(self) -> WorkflowStep:
        if not self._steps:
            raise InvalidWorkflowError(f"Workflow '{self.name}' has no steps")

        initial_steps = []
        for step in self._steps:
            if step.workflow_id != self.id:
                raise InvalidWorkflowError(
                    f"Step '{step.id}' belongs to workflow '{step.workflow_id}', not '{self.id}'"
                )
            if step.id in self._steps_by_id:
                raise InvalidWorkflowError(f"Duplicate step id '{step.id}'")
            if step.status_id in self._steps_by_status:
                raise InvalidWorkflowError(
                    f"Status '{step.status_id}' is placed on more than one step"
                )
            self._steps_by_id[step.id] = step
            self._steps_by_status[step.status_id] = step
            self._outgoing[step.id] = []
            if step.is_initial:
                initial_steps.append(step)

        if len(initial_steps) != 1:
            raise InvalidWorkflowError(
                f"Workflow '{self.name}' must have exactly one initial step, "
                f"found {len(initial_steps)}"
            )
        return initial_steps[0]

    def _index_transitions(self) -> None:
        seen_ids: set[str] = set()
        seen_edges: set[tuple[str, str, str]] = set()
        for transition in self._transitions:
            if transition.workflow_id != self.id:
                raise InvalidWorkflowError(
                    f"Transition '{transition.name}' belongs to workflow "
                    f"'{transition.workflow_id}', not '{self.id}'"
                )
            if transition.id in seen_ids:
                raise InvalidWorkflowError(f"Duplicate transition id '{transition.id}'")
            for step_id in (transition.from_step_id, transition.to_step_id):
                if step_id not in self._steps_by_id:
                    raise InvalidWorkflowError(
                        f"Transition '{transition.name}' references unknown step '{step_id}'"
                    )
            edge = (transition.from_step_id, transition.to_step_id, transition.name)
            if edge in seen_edges:
                raise InvalidWorkflowError(
                    f"Transition '{transition.name}' duplicates an existing edge; "
                    "parallel transitions need distinct names"
                )
            seen_ids.add(transition.id)
            seen_edges.add(edge)
            self._outgoing[transition.from_step_id].append(transition)

    # --- Queries ---

    def steps_of(self) -> tuple[WorkflowStep, ...]:
        """Return the workflow's steps in declaration order."""
        return self._steps

    @property
    def transitions(self) -> tuple[Transition, ...]:
        return self._transitions

    @property
    def initial_step(self) -> WorkflowStep:
        """The step newly created issues start at."""
        return self._initial_step

    @property
    def status_ids(self) -> tuple[str, ...]:
        return tuple(step.status_id for step in self._steps)

    def get_step(self, step_id: str) -> WorkflowStep:
        """Get a step by ID.

        Raises:
            StepNotFoundError: If the step is not part of this workflow.
        """
        step = self._steps_by_id.get(step_id)
        if step is None:
            raise StepNotFoundError(f"Step '{step_id}' not found in workflow '{self.id}'")
        return step

    def step_for_status(self, status_id: str) -> WorkflowStep | None:
        """Return the step that places ``status_id`` on this graph, if any."""
        return self._steps_by_status.get(status_id)

    def transitions_from(self, step_id: str) -> tuple[Transition, ...]:
        """Return outgoing transitions of a step.

        Terminal steps and unknown step IDs yield an empty tuple.
        """
        return tuple(self._outgoing.get(step_id, ()))

    def find_transition(
        self,
        from_step_id: str,
        to_step_id: str,
        name: str | None = None,
    ) -> Transition | None:
        """Find the edge from one step to another.

        Args:
            from_step_id: Source step ID.
            to_step_id: Target step ID.
            name: Disambiguates parallel transitions between the same steps.
                  When omitted, the first declared match wins.

        Returns:
            The transition, or None when the graph has no such edge.
        """
        for transition in self._outgoing.get(from_step_id, ()):
            if transition.to_step_id != to_step_id:
                continue
            if name is None or transition.name == name:
                return transition
        return None

    def find_transition_between(self, from_status: str, to_status: str) -> Transition | None:
        """Find the edge connecting two statuses, or None."""
        from_step = self.step_for_status(from_status)
        to_step = self.step_for_status(to_status)
        if from_step is None or to_step is None:
            return None
        return self.find_transition(from_step.id, to_step.id)

    # --- Copies ---

    def clone(
        self,
        workflow_id: str | None = None,
        name: str | None = None,
        project_id: str | None = None,
        is_draft: bool = False,
        draft_of: str | None = None,
        id_factory: Callable[[], str] = generate_id,
    ) -> Workflow:
        """Copy the graph with fresh step and transition IDs.

        Transition endpoints are remapped onto the new steps; rules are kept.
        """
        new_id = workflow_id or id_factory()
        step_ids = {step.id: id_factory() for step in self._steps}
        steps = [
            replace(step, id=step_ids[step.id], workflow_id=new_id) for step in self._steps
        ]
        transitions = [
            replace(
                transition,
                id=id_factory(),
                workflow_id=new_id,
                from_step_id=step_ids[transition.from_step_id],
                to_step_id=step_ids[transition.to_step_id],
            )
            for transition in self._transitions
        ]
        return Workflow(
            id=new_id,
            name=name or self.name,
            steps=steps,
            transitions=transitions,
            description=self.description,
            project_id=project_id if project_id is not None else self.project_id,
            is_draft=is_draft,
            draft_of=draft_of,
        )

    def __repr__(self) -> str:
        return (
            f"<Workflow(id={self.id!r}, name={self.name!r}, "
            f"steps={len(self._steps)}, transitions={len(self._transitions)})>"
        )


def parse_workflow(data: Mapping[str, Any]) -> Workflow:
    """Build a workflow from wholesale records.

    ``data`` holds the workflow row plus ``steps`` and ``transitions`` lists,
    in the shape the store, the remote backend and YAML files all use.
    Step records may omit ``workflow_id``; it defaults to the workflow's id.

    Raises:
        InvalidWorkflowError: If records are malformed or the graph is invalid.
    """
    try:
        workflow_id = str(data["id"])
        name = str(data["name"])
        raw_steps = data.get("steps") or []
        raw_transitions = data.get("transitions") or []

        steps = [
            WorkflowStep(
                id=str(s["id"]),
                workflow_id=str(s.get("workflow_id") or workflow_id),
                status_id=str(s["status_id"]),
                is_initial=bool(s.get("is_initial", False)),
                position_x=float(s.get("position_x") or 0),
                position_y=float(s.get("position_y") or 0),
            )
            for s in raw_steps
        ]
        transitions = [
            Transition(
                id=str(t.get("id") or generate_id()),
                workflow_id=str(t.get("workflow_id") or workflow_id),
                from_step_id=str(t["from_step_id"]),
                to_step_id=str(t["to_step_id"]),
                name=str(t["name"]),
                description=t.get("description"),
                conditions=parse_conditions(t.get("conditions")),
                validators=parse_validators(t.get("validators")),
                post_functions=parse_post_functions(t.get("post_functions")),
            )
            for t in raw_transitions
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidWorkflowError(f"Malformed workflow record: {e}") from e

    workflow = Workflow(
        id=workflow_id,
        name=name,
        steps=steps,
        transitions=transitions,
        description=data.get("description"),
        project_id=data.get("project_id"),
        is_default=bool(data.get("is_default", False)),
        is_active=bool(data.get("is_active", True)),
        is_draft=bool(data.get("is_draft", False)),
        draft_of=data.get("draft_of"),
    )
    logger.debug("Parsed %r", workflow)
    return workflow
