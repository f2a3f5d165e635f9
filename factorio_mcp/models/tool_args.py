"""Argument schemas for the blueprint tools.

Each tool validates its arguments against one of these models before
touching the layout; the same models publish the JSON schema advertised
to MCP clients.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, field_validator

from .blueprint import Direction, Position


class ToolArgs(BaseModel):
    """Base for tool argument models; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")


class PositionArgs(ToolArgs):
    """Position {x, y} in blueprint tile space."""

    x: float = Field(..., description="Horizontal coordinate")
    y: float = Field(..., description="Vertical coordinate")

    @field_validator("x", "y", mode="before")
    @classmethod
    def _require_number(cls, value):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("coordinate must be a number")
        return value

    def to_position(self) -> Position:
        return Position(x=self.x, y=self.y)


class CreateEntityArgs(ToolArgs):
    name: str = Field(..., description="The name of the entity to create")
    position: PositionArgs = Field(..., description="The position {x, y} to place the entity")
    direction: StrictInt = Field(
        default=int(Direction.NORTH),
        ge=0,
        le=7,
        description="The direction (0, 2, 4, 6) of the entity, where 0 is north",
    )
    recipe: Optional[str] = Field(
        default=None, description="Recipe to set (for assembling machines)"
    )
    modules: Optional[List[str]] = Field(
        default=None, description="Modules to insert into the entity"
    )


class CreateEntitiesArgs(ToolArgs):
    entities: List[CreateEntityArgs] = Field(
        ..., min_length=1, description="Entities to create, in placement order"
    )


class PositionOnlyArgs(ToolArgs):
    position: PositionArgs = Field(..., description="The position {x, y} to address")


class MoveEntityArgs(ToolArgs):
    fromPosition: PositionArgs = Field(..., description="The current position {x, y} of the entity")
    toPosition: PositionArgs = Field(..., description="The new position {x, y} for the entity")


class CreateTileArgs(ToolArgs):
    name: str = Field(..., description="The name of the tile to create")
    position: PositionArgs = Field(..., description="The position {x, y} to place the tile")


class BlueprintInfoArgs(ToolArgs):
    includeEntities: StrictBool = Field(
        default=False, description="Whether to include entity details in the response"
    )
    includeTiles: StrictBool = Field(
        default=False, description="Whether to include tile details in the response"
    )


class NoArgs(ToolArgs):
    pass


class EntityInfoArgs(ToolArgs):
    name: str = Field(..., description="The name of the entity to get information about")


class ResetBlueprintArgs(ToolArgs):
    confirm: StrictBool = Field(
        default=False, description="Confirm that you want to reset the blueprint"
    )


class LoadBlueprintStringArgs(ToolArgs):
    blueprintString: str = Field(
        ..., description="Encoded blueprint string to load, replacing the current blueprint"
    )


__all__ = [
    "ToolArgs",
    "PositionArgs",
    "CreateEntityArgs",
    "CreateEntitiesArgs",
    "PositionOnlyArgs",
    "MoveEntityArgs",
    "CreateTileArgs",
    "BlueprintInfoArgs",
    "NoArgs",
    "EntityInfoArgs",
    "ResetBlueprintArgs",
    "LoadBlueprintStringArgs",
]
