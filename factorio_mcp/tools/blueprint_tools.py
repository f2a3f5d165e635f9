"""MCP tools for building and editing a Factorio blueprint.

Each tool is an OperationDescriptor: a name, a pydantic argument model
(whose JSON schema is published as the tool input schema), a handler and
whether the tool can change the layout.

Errors come in two tiers:
- Protocol faults (unknown tool, invalid arguments, unexpected exceptions)
  are raised as McpError with a JSON-RPC error code.
- Domain failures (nothing at a position, unknown entity type, reset not
  confirmed, ...) are returned as {"success": false, "error": ...}.

After a tool that changed the layout, the blueprint is written to disk and
the result carries "savedToFile". A failed write is logged and never turns
into an error or a rollback.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from mcp import Tool
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData
from pydantic import ValidationError

from ..core.catalog import UnknownEntityTypeError
from ..core.codec import BlueprintDecodeError
from ..core.layout_store import CapabilityError, LayoutStore
from ..models.blueprint import Direction, Position
from ..models.tool_args import (
    BlueprintInfoArgs,
    CreateEntitiesArgs,
    CreateEntityArgs,
    CreateTileArgs,
    EntityInfoArgs,
    LoadBlueprintStringArgs,
    MoveEntityArgs,
    NoArgs,
    PositionOnlyArgs,
    ResetBlueprintArgs,
    ToolArgs,
)
from ..persistence.blueprint_persistence import BlueprintPersistence
from ..utils.response import error_response, success_response

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class OperationResult:
    """Handler outcome: the response envelope and whether the layout changed."""
    response: Dict[str, Any]
    mutated: bool = False


@dataclass
class OperationDescriptor:
    """Describes one blueprint tool."""
    name: str
    description: str
    args_model: Type[ToolArgs]
    handler: Callable[[Any], OperationResult]
    mutates: bool = False

    def to_tool(self) -> Tool:
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.args_model.model_json_schema(),
        )


def _fault(code: int, message: str) -> McpError:
    return McpError(ErrorData(code=code, message=message))


def _format_validation_error(error: ValidationError) -> str:
    """Render pydantic errors as 'loc: msg' pairs."""
    parts = []
    for err in error.errors():
        location = ".".join(str(p) for p in err["loc"]) or "arguments"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


def _not_found(kind: str, position: Position) -> Dict[str, Any]:
    return error_response(f"No {kind} found at position {position}", code="NOT_FOUND")


# ============================================================================
# Blueprint Tools
# ============================================================================

class BlueprintTools:
    """Dispatches blueprint tool calls to the layout store."""

    def __init__(self, store: LayoutStore, persistence: Optional[BlueprintPersistence] = None):
        """Initialize with the layout store and optional persistence.

        Args:
            store: Layout store holding the blueprint being edited
            persistence: Blueprint file writer (no saving if None)
        """
        self.store = store
        self.persistence = persistence
        self._operations: Dict[str, OperationDescriptor] = {
            op.name: op for op in self._build_operations()
        }

    def _build_operations(self) -> List[OperationDescriptor]:
        return [
            OperationDescriptor(
                name="create_entity",
                description="Create a new entity in the blueprint at the specified position",
                args_model=CreateEntityArgs,
                handler=self._create_entity,
                mutates=True,
            ),
            OperationDescriptor(
                name="create_entities",
                description=(
                    "Create multiple new entities in the blueprint at the specified positions. "
                    "Entities are created in order; each item reports its own outcome and the "
                    "call succeeds only if every item was created."
                ),
                args_model=CreateEntitiesArgs,
                handler=self._create_entities,
                mutates=True,
            ),
            OperationDescriptor(
                name="read_entity",
                description="Read entity information at the specified position",
                args_model=PositionOnlyArgs,
                handler=self._read_entity,
            ),
            OperationDescriptor(
                name="remove_entity",
                description="Remove an entity at the specified position",
                args_model=PositionOnlyArgs,
                handler=self._remove_entity,
                mutates=True,
            ),
            OperationDescriptor(
                name="move_entity",
                description=(
                    "Move an entity from one position to another. "
                    "The moved entity is recreated and receives a new entity number."
                ),
                args_model=MoveEntityArgs,
                handler=self._move_entity,
                mutates=True,
            ),
            OperationDescriptor(
                name="create_tile",
                description="Create a new tile in the blueprint at the specified position",
                args_model=CreateTileArgs,
                handler=self._create_tile,
                mutates=True,
            ),
            OperationDescriptor(
                name="remove_tile",
                description="Remove a tile at the specified position",
                args_model=PositionOnlyArgs,
                handler=self._remove_tile,
                mutates=True,
            ),
            OperationDescriptor(
                name="get_blueprint_info",
                description="Get information about the current blueprint",
                args_model=BlueprintInfoArgs,
                handler=self._get_blueprint_info,
            ),
            OperationDescriptor(
                name="get_blueprint_string",
                description="Get the encoded blueprint string",
                args_model=NoArgs,
                handler=self._get_blueprint_string,
            ),
            OperationDescriptor(
                name="load_blueprint_string",
                description="Replace the current blueprint with a decoded blueprint string",
                args_model=LoadBlueprintStringArgs,
                handler=self._load_blueprint_string,
                mutates=True,
            ),
            OperationDescriptor(
                name="list_entity_types",
                description="List available entity types that can be created",
                args_model=NoArgs,
                handler=self._list_entity_types,
            ),
            OperationDescriptor(
                name="get_entity_info",
                description="Get information about a specific entity type",
                args_model=EntityInfoArgs,
                handler=self._get_entity_info,
            ),
            OperationDescriptor(
                name="reset_blueprint",
                description="Reset the blueprint to an empty state",
                args_model=ResetBlueprintArgs,
                handler=self._reset_blueprint,
                mutates=True,
            ),
        ]

    def get_tools(self) -> List[Tool]:
        """Return all blueprint tools."""
        return [op.to_tool() for op in self._operations.values()]

    async def handle_tool(self, name: str, arguments: Optional[dict]) -> dict:
        """Validate and execute a tool call.

        Args:
            name: Tool name
            arguments: Tool arguments

        Returns:
            Result envelope, with "savedToFile" if the blueprint was persisted

        Raises:
            McpError: METHOD_NOT_FOUND, INVALID_PARAMS or INTERNAL_ERROR
        """
        logger.info(f"Tool called: {name} {arguments}")

        operation = self._operations.get(name)
        if operation is None:
            raise _fault(METHOD_NOT_FOUND, f"Unknown tool: {name}")

        try:
            args = operation.args_model.model_validate(arguments or {})
        except ValidationError as e:
            message = f"Invalid arguments for {name}: {_format_validation_error(e)}"
            logger.warning(message)
            raise _fault(INVALID_PARAMS, message) from e

        try:
            outcome = operation.handler(args)
        except Exception as e:
            logger.error(f"Error executing tool {name}: {e}")
            raise _fault(INTERNAL_ERROR, f"Error executing {name}: {e}") from e

        result = outcome.response
        if operation.mutates and outcome.mutated:
            saved = self._save()
            if saved:
                result["savedToFile"] = saved

        return result

    def _save(self) -> Optional[str]:
        if self.persistence is None:
            return None
        return self.persistence.save(self.store)

    # ========================================================================
    # Entities
    # ========================================================================

    def _place(self, args: CreateEntityArgs) -> Dict[str, Any]:
        """Create one entity, mapping domain errors to a failure envelope."""
        try:
            entity = self.store.create_entity(
                args.name,
                args.position.to_position(),
                Direction(args.direction),
                recipe=args.recipe,
                modules=args.modules,
            )
        except UnknownEntityTypeError as e:
            return error_response(str(e), code="UNKNOWN_TYPE")
        except CapabilityError as e:
            return error_response(str(e), code="CAPABILITY_ERROR")

        return success_response(entity=entity.to_dict())

    def _create_entity(self, args: CreateEntityArgs) -> OperationResult:
        response = self._place(args)
        return OperationResult(response, mutated=response["success"])

    def _create_entities(self, args: CreateEntitiesArgs) -> OperationResult:
        results = []
        for index, item in enumerate(args.entities):
            outcome = self._place(item)
            outcome["index"] = index
            if not outcome["success"]:
                logger.warning(f"create_entities item {index} failed: {outcome['error']}")
            results.append(outcome)

        created = sum(1 for r in results if r["success"])
        failed = len(results) - created
        response = {
            "success": failed == 0,
            "created": created,
            "failed": failed,
            "results": results,
        }
        if failed:
            response["error"] = f"{failed} of {len(results)} entities could not be created"
        return OperationResult(response, mutated=created > 0)

    def _read_entity(self, args: PositionOnlyArgs) -> OperationResult:
        position = args.position.to_position()
        entity = self.store.find_entity(position)
        if entity is None:
            return OperationResult(_not_found("entity", position))
        return OperationResult(success_response(entity=entity.to_dict()))

    def _remove_entity(self, args: PositionOnlyArgs) -> OperationResult:
        position = args.position.to_position()
        removed = self.store.remove_entity_at_position(position)
        if removed is None:
            return OperationResult(_not_found("entity", position))

        return OperationResult(
            success_response(removed={
                "name": removed.name,
                "position": removed.position.to_dict(),
                "direction": int(removed.direction),
                "entityNumber": removed.entity_number,
            }),
            mutated=True,
        )

    def _move_entity(self, args: MoveEntityArgs) -> OperationResult:
        from_position = args.fromPosition.to_position()
        to_position = args.toPosition.to_position()

        original = self.store.find_entity(from_position)
        if original is None:
            return OperationResult(_not_found("entity", from_position))
        previous_number = original.entity_number

        moved = self.store.move_entity(from_position, to_position)
        return OperationResult(
            success_response(moved={
                "name": moved.name,
                "from": from_position.to_dict(),
                "to": to_position.to_dict(),
                "direction": int(moved.direction),
                "entityNumber": moved.entity_number,
                "previousEntityNumber": previous_number,
            }),
            mutated=True,
        )

    # ========================================================================
    # Tiles
    # ========================================================================

    def _create_tile(self, args: CreateTileArgs) -> OperationResult:
        tile = self.store.create_tile(args.name, args.position.to_position())
        return OperationResult(success_response(tile=tile.to_dict()), mutated=True)

    def _remove_tile(self, args: PositionOnlyArgs) -> OperationResult:
        position = args.position.to_position()
        removed = self.store.remove_tile_at_position(position)
        if removed is None:
            return OperationResult(_not_found("tile", position))
        return OperationResult(success_response(removed=removed.to_dict()), mutated=True)

    # ========================================================================
    # Blueprint
    # ========================================================================

    def _get_blueprint_info(self, args: BlueprintInfoArgs) -> OperationResult:
        info = self.store.describe(
            include_entities=args.includeEntities,
            include_tiles=args.includeTiles,
        )
        return OperationResult(success_response(info=info))

    def _get_blueprint_string(self, args: NoArgs) -> OperationResult:
        return OperationResult(success_response(blueprintString=self.store.encode()))

    def _load_blueprint_string(self, args: LoadBlueprintStringArgs) -> OperationResult:
        try:
            self.store.load(args.blueprintString)
        except BlueprintDecodeError as e:
            return OperationResult(error_response(str(e), code="DECODE_ERROR"))
        except UnknownEntityTypeError as e:
            return OperationResult(error_response(str(e), code="UNKNOWN_TYPE"))

        return OperationResult(
            success_response(info=self.store.describe()),
            mutated=True,
        )

    def _reset_blueprint(self, args: ResetBlueprintArgs) -> OperationResult:
        if args.confirm is not True:
            return OperationResult(error_response(
                "Confirmation required: set confirm to true to reset the blueprint.",
                code="CONFIRMATION_REQUIRED",
            ))

        self.store.reset()
        return OperationResult(
            success_response(message="Blueprint has been reset"),
            mutated=True,
        )

    # ========================================================================
    # Catalog
    # ========================================================================

    def _list_entity_types(self, args: NoArgs) -> OperationResult:
        catalog = self.store.catalog
        return OperationResult(success_response(
            entityTypes=catalog.names(),
            moduleTypes=catalog.module_names(),
        ))

    def _get_entity_info(self, args: EntityInfoArgs) -> OperationResult:
        definition = self.store.catalog.lookup(args.name)
        if definition is None:
            return OperationResult(error_response(
                f"Entity type \"{args.name}\" not found", code="NOT_FOUND"
            ))
        return OperationResult(success_response(entity=definition.to_dict()))


__all__ = [
    "BlueprintTools",
    "OperationDescriptor",
    "OperationResult",
]
