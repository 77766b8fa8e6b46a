"""Tests for tag endpoints."""
from collections.abc import Generator
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient


@pytest.fixture(autouse=True)
def mock_fetch_metadata() -> Generator[AsyncMock]:
    """Bookmarks created here always carry client data; never hit the network anyway."""
    with patch(
        'services.enrichment_service.fetch_metadata',
        new_callable=AsyncMock,
        return_value=None,
    ) as mock:
        yield mock


async def _create_bookmark(client: AsyncClient, url: str, **body: object) -> dict:
    response = await client.post("/bookmarks", json={"url": url, "title": url, **body})
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _tags_by_path(client: AsyncClient) -> dict[str, dict]:
    response = await client.get("/tags")
    assert response.status_code == 200
    return {t["path"]: t for t in response.json()["data"]}


async def test_list_tags_empty(client: AsyncClient) -> None:
    """Test listing tags when none exist."""
    response = await client.get("/tags")
    assert response.status_code == 200
    assert response.json() == {"success": True, "data": []}


async def test_list_tags(client: AsyncClient) -> None:
    """Test that tags are listed with their hierarchy fields."""
    await _create_bookmark(client, "https://a.example.com", tags=["python"], tagPaths=["A/B"])

    tags = await _tags_by_path(client)
    assert set(tags) == {"python", "A", "A/B"}

    assert tags["python"]["level"] == 1
    assert tags["python"]["parentId"] is None
    assert tags["A/B"]["level"] == 2
    assert tags["A/B"]["parentId"] == tags["A"]["id"]
    assert tags["A/B"]["name"] == "B"
    assert "createdAt" in tags["A"]


async def test_list_tags_search(client: AsyncClient) -> None:
    """Test name substring search."""
    await _create_bookmark(client, "https://s.example.com", tags=["python", "rust", "pytest"])

    response = await client.get("/tags", params={"search": "py"})
    names = [t["name"] for t in response.json()["data"]]
    assert names == ["python", "pytest"]


async def test_get_tag_tree_partition(client: AsyncClient) -> None:
    """Test that flat tags are standalone and path tags form hierarchical trees."""
    await _create_bookmark(client, "https://t.example.com", tags=["Go"], tagPaths=["A/B"])

    response = await client.get("/tags/tree")
    assert response.status_code == 200
    tree = response.json()["data"]

    assert [n["name"] for n in tree["standalone"]] == ["Go"]
    assert tree["standalone"][0]["children"] == []

    assert len(tree["hierarchical"]) == 1
    root = tree["hierarchical"][0]
    assert root["name"] == "A"
    assert [c["name"] for c in root["children"]] == ["B"]
    assert root["children"][0]["children"] == []


async def test_update_tag_renames_descendants_and_bookmark_paths(client: AsyncClient) -> None:
    """Test that renaming a tag rewrites the paths below it and on bookmarks."""
    bookmark = await _create_bookmark(
        client, "https://r.example.com", tagPaths=["Frontend/Framework/Vue"],
    )
    tags = await _tags_by_path(client)

    response = await client.put(
        "/tags",
        params={"id": tags["Frontend"]["id"]},
        json={"name": "Web", "color": "#ff0000"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Web"
    assert data["path"] == "Web"
    assert data["color"] == "#ff0000"

    renamed = await _tags_by_path(client)
    assert set(renamed) == {"Web", "Web/Framework", "Web/Framework/Vue"}
    assert renamed["Web/Framework/Vue"]["id"] == tags["Frontend/Framework/Vue"]["id"]

    refreshed = (await client.get(f"/bookmarks/{bookmark['id']}")).json()["data"]
    assert [p["path"] for p in refreshed["tagPaths"]] == ["Web/Framework/Vue"]

    listed = await client.get("/bookmarks", params={"menuPath": "Web"})
    assert [b["id"] for b in listed.json()["data"]] == [bookmark["id"]]


async def test_update_tag_child_keeps_parent_prefix(client: AsyncClient) -> None:
    """Test that renaming a non-root tag only replaces its own segment."""
    await _create_bookmark(client, "https://c.example.com", tagPaths=["A/B/C"])
    tags = await _tags_by_path(client)

    response = await client.put("/tags", params={"id": tags["A/B"]["id"]}, json={"name": "X"})
    assert response.json()["data"]["path"] == "A/X"
    assert set(await _tags_by_path(client)) == {"A", "A/X", "A/X/C"}


async def test_update_tag_omitted_color_clears_it(client: AsyncClient) -> None:
    """Test that a rename without color removes the color."""
    await _create_bookmark(client, "https://col.example.com", tags=["colored"])
    tag_id = (await _tags_by_path(client))["colored"]["id"]

    await client.put("/tags", params={"id": tag_id}, json={"name": "colored", "color": "blue"})
    response = await client.put("/tags", params={"id": tag_id}, json={"name": "colored"})
    assert response.json()["data"]["color"] is None


async def test_update_tag_conflict(client: AsyncClient) -> None:
    """Test that renaming onto an existing path is a 409."""
    await _create_bookmark(client, "https://x.example.com", tags=["one", "two"])
    tags = await _tags_by_path(client)

    response = await client.put("/tags", params={"id": tags["one"]["id"]}, json={"name": "two"})
    assert response.status_code == 409
    assert response.json()["success"] is False


async def test_update_tag_rejects_separator(client: AsyncClient) -> None:
    """Test that a name containing '/' is rejected."""
    await _create_bookmark(client, "https://sep.example.com", tags=["plain"])
    tag_id = (await _tags_by_path(client))["plain"]["id"]

    response = await client.put("/tags", params={"id": tag_id}, json={"name": "a/b"})
    assert response.status_code == 400


async def test_update_tag_requires_name(client: AsyncClient) -> None:
    """Test that a blank name is rejected."""
    await _create_bookmark(client, "https://blank.example.com", tags=["plain"])
    tag_id = (await _tags_by_path(client))["plain"]["id"]

    response = await client.put("/tags", params={"id": tag_id}, json={"name": "   "})
    assert response.status_code == 400
    assert response.json()["error"] == "Tag name is required"


async def test_update_tag_name_too_long(client: AsyncClient) -> None:
    """Test that a name wider than the column is a 400, not a database error."""
    await _create_bookmark(client, "https://long.example.com", tags=["plain"])
    tag_id = (await _tags_by_path(client))["plain"]["id"]

    response = await client.put("/tags", params={"id": tag_id}, json={"name": "n" * 101})
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Tag name cannot exceed 100 characters",
    }


async def test_update_tag_not_found(client: AsyncClient) -> None:
    """Test renaming a tag that does not exist."""
    response = await client.put("/tags", params={"id": 99999}, json={"name": "x"})
    assert response.status_code == 404
    assert response.json()["error"] == "Tag not found"


async def test_delete_tag_unlinks_bookmarks_and_orphans_children(client: AsyncClient) -> None:
    """Test that deleting a tag removes its links and leaves child tags as roots."""
    bookmark = await _create_bookmark(
        client, "https://d.example.com", tags=["drop"], tagPaths=["P/Q"],
    )
    tags = await _tags_by_path(client)

    response = await client.delete("/tags", params={"id": tags["drop"]["id"]})
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Tag deleted"}

    refreshed = (await client.get(f"/bookmarks/{bookmark['id']}")).json()["data"]
    assert refreshed["tags"] == []

    await client.delete("/tags", params={"id": tags["P"]["id"]})
    tree = (await client.get("/tags/tree")).json()["data"]
    roots = tree["standalone"] + tree["hierarchical"]
    assert [n["path"] for n in roots] == ["P/Q"]
    assert tree["hierarchical"][0]["name"] == "Q"


async def test_delete_tag_not_found(client: AsyncClient) -> None:
    """Test deleting a tag that does not exist."""
    response = await client.delete("/tags", params={"id": 99999})
    assert response.status_code == 404


async def test_delete_tag_missing_id(client: AsyncClient) -> None:
    """Test that the id query parameter is required."""
    response = await client.delete("/tags")
    assert response.status_code == 400
    assert response.json()["error"] == "Missing tag id"


async def test_clear_tags(client: AsyncClient) -> None:
    """Test that clearing removes every tag."""
    await _create_bookmark(client, "https://clr.example.com", tags=["a", "b"], tagPaths=["C/D"])

    response = await client.delete("/tags/clear")
    assert response.status_code == 200
    body = response.json()
    assert body["data"] == {"deleted": 4}
    assert body["message"] == "All tags deleted"

    assert (await client.get("/tags")).json()["data"] == []


async def test_clear_tags_via_get(client: AsyncClient) -> None:
    """Test that GET is accepted as well as DELETE."""
    await _create_bookmark(client, "https://g.example.com", tags=["only"])

    response = await client.get("/tags/clear")
    assert response.status_code == 200
    assert response.json()["data"] == {"deleted": 1}


async def test_clear_tags_requires_write_access(client: AsyncClient) -> None:
    """Test that clearing tags is a guarded write."""
    response = await client.delete("/tags/clear", headers={"Origin": "https://evil.example.com"})
    assert response.status_code == 401
