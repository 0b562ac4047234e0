"""
Controller-side IR types: params profiles, actions, response formats.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..ast import ExternalRef
from ..types import ActionStatus


class ParamIR(BaseModel):
    """
    One params-profile entry.

    ``name`` is the model member (field or association) the entry refers to;
    ``client_name`` is the property name in client declarations.
    """

    name: str
    client_name: str
    source: Literal["field", "association"]
    required: bool

    model_config = ConfigDict(frozen=True)


class ParamsProfileIR(BaseModel):
    name: str
    type_name: str
    params: list[ParamIR] = Field(default_factory=list)
    expanded_from: str | None = None

    model_config = ConfigDict(frozen=True)


class ActionIR(BaseModel):
    """
    A controller action with its route shape.

    Attributes:
        name: Action name
        crud: True for the fixed CRUD vocabulary
        method: HTTP method the handler is registered under
        path: Route path relative to the resource prefix
        member: True when the route carries an ``{id}`` segment
        body_profile: Params profile used as request body, if any
        status: default, overridden, or ejected
        reference: Hand-written implementation for ejected actions
    """

    name: str
    crud: bool
    method: str
    path: str
    member: bool = False
    body_profile: str | None = None
    status: ActionStatus = ActionStatus.DEFAULT
    reference: ExternalRef | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def generated(self) -> bool:
        return self.status == ActionStatus.DEFAULT


class ControllerIR(BaseModel):
    formats: list[str]
    profiles: list[ParamsProfileIR] = Field(default_factory=list)
    actions: list[ActionIR] = Field(default_factory=list)
    ejected: ExternalRef | None = None

    model_config = ConfigDict(frozen=True)

    def get_profile(self, name: str) -> ParamsProfileIR | None:
        for p in self.profiles:
            if p.name == name:
                return p
        return None

    @property
    def generated_actions(self) -> list[ActionIR]:
        """Actions whose handlers are rendered (neither overridden nor ejected)."""
        return [a for a in self.actions if a.generated]
