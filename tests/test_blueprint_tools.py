"""Tests for blueprint_tools.py - tool dispatch, envelopes and persistence."""

import pytest
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND

from factorio_mcp.core.codec import decode, encode
from factorio_mcp.core.layout_store import LayoutStore
from factorio_mcp.models.blueprint import Entity, Layout, Position
from factorio_mcp.persistence.blueprint_persistence import BlueprintPersistence
from factorio_mcp.tools.blueprint_tools import BlueprintTools
from factorio_mcp.utils.response import is_success

EXPECTED_TOOLS = {
    "create_entity",
    "create_entities",
    "read_entity",
    "remove_entity",
    "move_entity",
    "create_tile",
    "remove_tile",
    "get_blueprint_info",
    "get_blueprint_string",
    "load_blueprint_string",
    "list_entity_types",
    "get_entity_info",
    "reset_blueprint",
}


@pytest.fixture
def blueprint_path(tmp_path):
    return tmp_path / "blueprints" / "blueprint.txt"


@pytest.fixture
def store():
    return LayoutStore()


@pytest.fixture
def tools(store, blueprint_path):
    """BlueprintTools saving to a temporary file."""
    return BlueprintTools(store, BlueprintPersistence(blueprint_path))


def pos(x, y):
    return {"x": x, "y": y}


# ========== Tool listing ==========

def test_get_tools_lists_every_operation(tools):
    assert {tool.name for tool in tools.get_tools()} == EXPECTED_TOOLS


def test_input_schema_from_argument_model(tools):
    schemas = {tool.name: tool.inputSchema for tool in tools.get_tools()}

    create = schemas["create_entity"]
    assert create["type"] == "object"
    assert set(create["required"]) == {"name", "position"}
    assert "direction" in create["properties"]
    assert "confirm" in schemas["reset_blueprint"]["properties"]


# ========== Entities ==========

@pytest.mark.asyncio
async def test_create_then_read(tools):
    result = await tools.handle_tool("create_entity", {"name": "assembling-machine-1", "position": pos(1, 1)})

    assert is_success(result)
    assert result["entity"]["name"] == "assembling-machine-1"
    assert result["entity"]["position"] == {"x": 1, "y": 1}

    read = await tools.handle_tool("read_entity", {"position": pos(1, 1)})
    assert is_success(read)
    assert read["entity"] == result["entity"]
    assert "savedToFile" not in read


@pytest.mark.asyncio
async def test_create_entity_saves(tools, store, blueprint_path):
    result = await tools.handle_tool("create_entity", {
        "name": "assembling-machine-2",
        "position": pos(0.5, 0.5),
        "direction": 2,
        "recipe": "iron-gear-wheel",
        "modules": ["speed-module"],
    })

    assert result["savedToFile"] == "blueprint.txt"
    assert result["entity"]["recipe"] == "iron-gear-wheel"
    assert result["entity"]["modules"] == ["speed-module"]
    assert result["entity"]["direction"] == 2
    assert decode(blueprint_path.read_text()) == store.layout


@pytest.mark.asyncio
async def test_read_entity_on_empty_layout(tools):
    result = await tools.handle_tool("read_entity", {"position": pos(0, 0)})

    assert result["success"] is False
    assert result["code"] == "NOT_FOUND"
    assert "(0.0, 0.0)" in result["error"]


@pytest.mark.asyncio
async def test_unknown_type_is_domain_failure(tools, store, blueprint_path):
    await tools.handle_tool("create_entity", {"name": "inserter", "position": pos(5, 5)})
    counter = store.next_entity_number

    result = await tools.handle_tool("create_entity", {"name": "not-a-real-type", "position": pos(0, 0)})

    assert result["success"] is False
    assert result["code"] == "UNKNOWN_TYPE"
    assert "not-a-real-type" in result["error"]
    assert "savedToFile" not in result
    assert store.entity_count == 1
    assert store.next_entity_number == counter


@pytest.mark.asyncio
async def test_failed_creation_does_not_save(tools, blueprint_path):
    await tools.handle_tool("create_entity", {"name": "not-a-real-type", "position": pos(0, 0)})
    assert not blueprint_path.exists()


@pytest.mark.asyncio
async def test_recipe_on_unsupported_type(tools, store):
    result = await tools.handle_tool("create_entity", {
        "name": "wooden-chest", "position": pos(0, 0), "recipe": "iron-gear-wheel",
    })

    assert result["success"] is False
    assert result["code"] == "CAPABILITY_ERROR"
    assert store.entity_count == 0


@pytest.mark.asyncio
async def test_remove_entity(tools, store):
    await tools.handle_tool("create_entity", {"name": "inserter", "position": pos(2, 2), "direction": 4})

    result = await tools.handle_tool("remove_entity", {"position": pos(2, 2)})
    assert is_success(result)
    assert result["removed"] == {
        "name": "inserter", "position": {"x": 2, "y": 2}, "direction": 4, "entityNumber": 1,
    }
    assert result["savedToFile"] == "blueprint.txt"
    assert store.entity_count == 0

    again = await tools.handle_tool("remove_entity", {"position": pos(2, 2)})
    assert again["success"] is False
    assert "savedToFile" not in again


@pytest.mark.asyncio
async def test_move_entity(tools):
    created = await tools.handle_tool("create_entity", {
        "name": "assembling-machine-2", "position": pos(1, 1), "recipe": "iron-gear-wheel",
    })

    result = await tools.handle_tool("move_entity", {"fromPosition": pos(1, 1), "toPosition": pos(4, 1)})

    assert is_success(result)
    moved = result["moved"]
    assert moved["from"] == {"x": 1, "y": 1}
    assert moved["to"] == {"x": 4, "y": 1}
    assert moved["previousEntityNumber"] == created["entity"]["entityNumber"]
    assert moved["entityNumber"] != moved["previousEntityNumber"]
    assert "savedToFile" in result

    old = await tools.handle_tool("read_entity", {"position": pos(1, 1)})
    new = await tools.handle_tool("read_entity", {"position": pos(4, 1)})
    assert old["success"] is False
    assert new["entity"]["recipe"] == "iron-gear-wheel"
    assert new["entity"]["name"] == "assembling-machine-2"


@pytest.mark.asyncio
async def test_move_missing_entity(tools):
    result = await tools.handle_tool("move_entity", {"fromPosition": pos(1, 1), "toPosition": pos(4, 1)})

    assert result["success"] is False
    assert result["code"] == "NOT_FOUND"
    assert "savedToFile" not in result


# ========== Batch creation ==========

@pytest.mark.asyncio
async def test_create_entities_all_succeed(tools, store):
    result = await tools.handle_tool("create_entities", {"entities": [
        {"name": "transport-belt", "position": pos(i, 0), "direction": 2} for i in range(3)
    ]})

    assert is_success(result)
    assert result["created"] == 3
    assert result["failed"] == 0
    assert [r["entity"]["entityNumber"] for r in result["results"]] == [1, 2, 3]
    assert result["savedToFile"] == "blueprint.txt"
    assert store.entity_count == 3


@pytest.mark.asyncio
async def test_create_entities_partial_failure(tools, store):
    result = await tools.handle_tool("create_entities", {"entities": [
        {"name": "inserter", "position": pos(0, 0)},
        {"name": "bogus-entity", "position": pos(1, 0)},
        {"name": "inserter", "position": pos(2, 0)},
    ]})

    assert result["success"] is False
    assert result["created"] == 2
    assert result["failed"] == 1
    assert result["results"][1]["index"] == 1
    assert result["results"][1]["success"] is False
    assert "bogus-entity" in result["results"][1]["error"]
    assert result["results"][2]["entity"]["entityNumber"] == 2
    assert "savedToFile" in result
    assert store.entity_count == 2


@pytest.mark.asyncio
async def test_create_entities_all_fail(tools, blueprint_path):
    result = await tools.handle_tool("create_entities", {"entities": [
        {"name": "bogus-entity", "position": pos(0, 0)},
    ]})

    assert result["success"] is False
    assert result["created"] == 0
    assert "savedToFile" not in result
    assert not blueprint_path.exists()


@pytest.mark.asyncio
async def test_create_entities_invalid_item_rejects_batch(tools, store):
    with pytest.raises(McpError) as exc_info:
        await tools.handle_tool("create_entities", {"entities": [
            {"name": "inserter", "position": pos(0, 0)},
            {"name": "inserter"},
        ]})

    assert exc_info.value.error.code == INVALID_PARAMS
    assert "entities.1.position" in exc_info.value.error.message
    assert store.entity_count == 0


# ========== Tiles ==========

@pytest.mark.asyncio
async def test_create_and_remove_tile(tools, store):
    created = await tools.handle_tool("create_tile", {"name": "concrete", "position": pos(3, 3)})
    assert created["tile"] == {"name": "concrete", "position": {"x": 3, "y": 3}}
    assert "savedToFile" in created

    removed = await tools.handle_tool("remove_tile", {"position": pos(3, 3)})
    assert removed["removed"]["name"] == "concrete"
    assert store.tile_count == 0

    missing = await tools.handle_tool("remove_tile", {"position": pos(3, 3)})
    assert missing["success"] is False
    assert "No tile found" in missing["error"]


# ========== Blueprint ==========

@pytest.mark.asyncio
async def test_blueprint_info_bounding_box(tools):
    await tools.handle_tool("create_entity", {"name": "inserter", "position": pos(0, 0)})
    await tools.handle_tool("create_entity", {"name": "inserter", "position": pos(5, 3)})

    result = await tools.handle_tool("get_blueprint_info", {})

    info = result["info"]
    assert info["entityCount"] == 2
    assert info["tileCount"] == 0
    assert info["dimensions"] == {"topLeft": {"x": 0, "y": 0}, "bottomRight": {"x": 5, "y": 3}}
    assert "entities" not in info


@pytest.mark.asyncio
async def test_blueprint_info_listings(tools):
    await tools.handle_tool("create_entity", {"name": "inserter", "position": pos(0, 0)})

    result = await tools.handle_tool("get_blueprint_info", {"includeEntities": True, "includeTiles": True})

    assert len(result["info"]["entities"]) == 1
    assert "tiles" not in result["info"]


@pytest.mark.asyncio
async def test_blueprint_info_without_arguments(tools):
    result = await tools.handle_tool("get_blueprint_info", None)
    assert result["info"] == {"entityCount": 0, "tileCount": 0}


@pytest.mark.asyncio
async def test_get_blueprint_string(tools, store):
    await tools.handle_tool("create_entity", {"name": "inserter", "position": pos(0, 0)})

    result = await tools.handle_tool("get_blueprint_string", {})

    assert result["blueprintString"].startswith("0")
    assert decode(result["blueprintString"]) == store.layout
    assert "savedToFile" not in result


@pytest.mark.asyncio
async def test_load_blueprint_string(tools, store, blueprint_path):
    source = Layout(entities=[Entity(9, "inserter", Position(2, 2))])

    result = await tools.handle_tool("load_blueprint_string", {"blueprintString": encode(source)})

    assert is_success(result)
    assert result["info"]["entityCount"] == 1
    assert result["savedToFile"] == "blueprint.txt"
    assert store.layout == source
    assert decode(blueprint_path.read_text()) == source


@pytest.mark.asyncio
async def test_load_invalid_blueprint_string(tools, store):
    await tools.handle_tool("create_entity", {"name": "inserter", "position": pos(0, 0)})

    result = await tools.handle_tool("load_blueprint_string", {"blueprintString": "not a blueprint"})

    assert result["success"] is False
    assert result["code"] == "DECODE_ERROR"
    assert store.entity_count == 1


# ========== Reset ==========

@pytest.mark.asyncio
@pytest.mark.parametrize("arguments", [{}, {"confirm": False}])
async def test_reset_requires_confirmation(tools, store, arguments):
    await tools.handle_tool("create_entity", {"name": "inserter", "position": pos(0, 0)})
    await tools.handle_tool("create_tile", {"name": "concrete", "position": pos(0, 0)})

    result = await tools.handle_tool("reset_blueprint", arguments)

    assert result["success"] is False
    assert result["code"] == "CONFIRMATION_REQUIRED"
    assert "confirm" in result["error"].lower()
    assert "savedToFile" not in result
    assert store.entity_count == 1
    assert store.tile_count == 1


@pytest.mark.asyncio
async def test_reset_confirmed(tools, store, blueprint_path):
    await tools.handle_tool("create_entity", {"name": "inserter", "position": pos(0, 0)})
    await tools.handle_tool("create_entity", {"name": "inserter", "position": pos(1, 0)})

    result = await tools.handle_tool("reset_blueprint", {"confirm": True})

    assert is_success(result)
    assert result["savedToFile"] == "blueprint.txt"
    assert store.entity_count == 0
    assert store.tile_count == 0
    assert decode(blueprint_path.read_text()).entities == []

    created = await tools.handle_tool("create_entity", {"name": "inserter", "position": pos(0, 0)})
    assert created["entity"]["entityNumber"] == 1


# ========== Catalog ==========

@pytest.mark.asyncio
async def test_list_entity_types(tools):
    result = await tools.handle_tool("list_entity_types", {})

    assert "assembling-machine-1" in result["entityTypes"]
    assert result["entityTypes"] == sorted(result["entityTypes"])
    assert "speed-module" in result["moduleTypes"]


@pytest.mark.asyncio
async def test_get_entity_info(tools):
    result = await tools.handle_tool("get_entity_info", {"name": "beacon"})

    assert result["entity"]["name"] == "beacon"
    assert result["entity"]["moduleSlots"] == 2

    missing = await tools.handle_tool("get_entity_info", {"name": "warp-drive"})
    assert missing["success"] is False
    assert "warp-drive" in missing["error"]


# ========== Protocol faults ==========

@pytest.mark.asyncio
async def test_unknown_tool(tools):
    with pytest.raises(McpError) as exc_info:
        await tools.handle_tool("launch_rocket", {})

    assert exc_info.value.error.code == METHOD_NOT_FOUND
    assert "launch_rocket" in exc_info.value.error.message


@pytest.mark.asyncio
@pytest.mark.parametrize("name, arguments", [
    ("create_entity", {"name": "inserter"}),
    ("create_entity", {"name": "inserter", "position": {"x": "1", "y": 0}}),
    ("create_entity", {"name": "inserter", "position": {"x": True, "y": 0}}),
    ("create_entity", {"name": "inserter", "position": pos(0, 0), "direction": 9}),
    ("create_entity", {"name": 42, "position": pos(0, 0)}),
    ("create_entities", {"entities": []}),
    ("move_entity", {"fromPosition": pos(0, 0)}),
    ("reset_blueprint", {"confirm": "yes"}),
    ("get_blueprint_info", {"includeEntities": 1}),
    ("get_entity_info", {}),
])
async def test_invalid_arguments(tools, store, name, arguments):
    with pytest.raises(McpError) as exc_info:
        await tools.handle_tool(name, arguments)

    assert exc_info.value.error.code == INVALID_PARAMS
    assert name in exc_info.value.error.message
    assert store.entity_count == 0


@pytest.mark.asyncio
async def test_unexpected_exception_is_internal_error(tools, store, monkeypatch):
    def broken(position):
        raise RuntimeError("index corrupted")

    monkeypatch.setattr(store, "find_entity", broken)

    with pytest.raises(McpError) as exc_info:
        await tools.handle_tool("read_entity", {"position": pos(0, 0)})

    assert exc_info.value.error.code == INTERNAL_ERROR
    assert "Error executing read_entity: index corrupted" == exc_info.value.error.message


# ========== Persistence failures ==========

@pytest.mark.asyncio
async def test_save_failure_keeps_mutation(tmp_path, store):
    blocker = tmp_path / "occupied"
    blocker.write_text("not a directory")
    tools = BlueprintTools(store, BlueprintPersistence(blocker / "blueprint.txt"))

    result = await tools.handle_tool("create_entity", {"name": "inserter", "position": pos(0, 0)})

    assert is_success(result)
    assert "savedToFile" not in result
    assert store.entity_count == 1


@pytest.mark.asyncio
async def test_without_persistence(store):
    tools = BlueprintTools(store)

    result = await tools.handle_tool("create_entity", {"name": "inserter", "position": pos(0, 0)})

    assert is_success(result)
    assert "savedToFile" not in result
