"""Tests covering the builder HTTP control surface."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from dreamcup import BuilderConfig
from dreamcup.api.server import create_app
from dreamcup.catalog import IngredientCatalog
from dreamcup.ingredients import IngredientDescriptor
from dreamcup.session import SessionManager


@pytest.fixture()
def catalog() -> IngredientCatalog:
    return IngredientCatalog(
        [
            IngredientDescriptor(id="1", name="Espresso", fill_weight=25, color="#4B2E1E", unit_price=15),
            IngredientDescriptor(id="2", name="Melk", fill_weight=50, color="#F5F0E6", unit_price=10),
            IngredientDescriptor(
                id="8", name="Kremfløte", fill_weight=15, color="#FFFDF5", unit_price=8, is_available=False
            ),
        ]
    )


@pytest.fixture()
def client(catalog: IngredientCatalog) -> TestClient:
    app = create_app(manager=SessionManager(), catalog=catalog, config=BuilderConfig())
    return TestClient(app)


def open_session(client: TestClient) -> str:
    response = client.post("/sessions")
    assert response.status_code == 201
    return response.json()["sessionId"]


def test_healthz(client: TestClient) -> None:
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "profile": "default", "sessions": 0}


def test_lists_themes_and_ingredients(client: TestClient) -> None:
    themes = client.get("/themes").json()["themes"]
    ingredients = client.get("/ingredients").json()["ingredients"]
    everything = client.get("/ingredients", params={"include_unavailable": True}).json()["ingredients"]

    assert len(themes) == 8
    assert themes[0]["name"] == "matcha"
    assert [item["id"] for item in ingredients] == ["1", "2"]
    assert len(everything) == 3
    assert client.get("/ingredients/1").json()["fillWeight"] == 25
    assert client.get("/ingredients/404").status_code == 404


def test_fill_drain_reset_flow(client: TestClient) -> None:
    session_id = open_session(client)

    fill_x = client.post(f"/sessions/{session_id}/fill", json={"ingredientId": "1"})
    assert fill_x.status_code == 200
    assert fill_x.json()["filledIndices"] == [19, 18, 17, 16, 15]
    assert [cue["target"] for cue in fill_x.json()["cues"] if cue["effect"] == "grow"] == [
        "Fill-1",
        "Fill-2",
        "Fill-3",
        "Fill-4",
        "Fill-5",
    ]

    fill_y = client.post(
        f"/sessions/{session_id}/fill",
        json={"ingredient": {"id": "Y", "fillWeight": 50, "color": "#F5F0E6"}},
    )
    assert fill_y.json()["filledIndices"] == list(range(14, 4, -1))

    drain_x = client.post(f"/sessions/{session_id}/drain", json={"ingredientId": 1})
    body = drain_x.json()
    assert body["clearedIndices"] == [19, 18, 17, 16, 15]
    assert body["movedIndices"][0] == {"from": 5, "to": 10}
    assert len(body["movedIndices"]) == 10
    assert body["layers"][:10] == [None] * 10
    assert all(layer["sourceIngredientId"] == "Y" for layer in body["layers"][10:])

    missing = client.post(
        f"/sessions/{session_id}/drain",
        json={"ingredient": {"id": "Z", "fillWeight": 25}},
    )
    assert missing.status_code == 200
    assert missing.json()["movedIndices"] == []
    assert missing.json()["cues"] == []

    reset = client.post(f"/sessions/{session_id}/reset")
    assert reset.json()["clearedIndices"] == list(range(10, 20))
    assert client.get(f"/sessions/{session_id}/layers").json()["layers"] == [None] * 20


def test_invalid_ingredient_is_rejected(client: TestClient) -> None:
    session_id = open_session(client)

    no_color = client.post(
        f"/sessions/{session_id}/fill",
        json={"ingredient": {"id": "X", "fillWeight": 25}},
    )
    negative = client.post(
        f"/sessions/{session_id}/fill",
        json={"ingredient": {"id": "X", "fillWeight": -10, "color": "#fff"}},
    )
    empty = client.post(f"/sessions/{session_id}/fill", json={})
    unknown = client.post(f"/sessions/{session_id}/fill", json={"ingredientId": "999"})

    assert no_color.status_code == 400
    assert negative.status_code == 400
    assert empty.status_code == 400
    assert unknown.status_code == 404
    assert client.get(f"/sessions/{session_id}/layers").json()["rev"] == 0


def test_unavailable_catalog_ingredient_cannot_be_poured(client: TestClient) -> None:
    session_id = open_session(client)

    fill = client.post(f"/sessions/{session_id}/fill", json={"ingredientId": "8"})
    drain = client.post(f"/sessions/{session_id}/drain", json={"ingredientId": "8"})

    assert fill.status_code == 400
    assert drain.status_code == 400
    assert client.get(f"/sessions/{session_id}/layers").json()["rev"] == 0


def test_oversized_fill_weights(client: TestClient) -> None:
    session_id = open_session(client)

    flood = client.post(
        f"/sessions/{session_id}/fill",
        json={"ingredient": {"id": "X", "fillWeight": 1e308, "color": "#fff"}},
    )
    too_big = client.post(
        f"/sessions/{session_id}/drain",
        json={"ingredient": {"id": "X", "fillWeight": 10**400}},
    )

    assert flood.status_code == 200
    assert flood.json()["filledIndices"] == list(range(19, -1, -1))
    assert too_big.status_code == 400


def test_selection_flow(client: TestClient) -> None:
    session_id = open_session(client)

    added = client.post(f"/sessions/{session_id}/selections", json={"ingredientId": "1"})
    client.post(f"/sessions/{session_id}/selections", json={"ingredientId": "2"})
    unavailable = client.post(f"/sessions/{session_id}/selections", json={"ingredientId": "8"})

    assert added.status_code == 200
    assert added.json()["session"]["fillLevel"] == 25.0
    assert unavailable.status_code == 400

    state = client.get(f"/sessions/{session_id}").json()
    assert [item["name"] for item in state["selections"]] == ["Espresso", "Melk"]
    assert state["totalPrice"] == 25.0

    removed = client.delete(f"/sessions/{session_id}/selections/0")
    assert removed.status_code == 200
    assert removed.json()["clearedIndices"] == [19, 18, 17, 16, 15]
    assert [item["name"] for item in removed.json()["session"]["selections"]] == ["Melk"]
    assert client.delete(f"/sessions/{session_id}/selections/5").status_code == 404

    cleared = client.post(f"/sessions/{session_id}/clear")
    assert cleared.json()["session"]["selections"] == []
    assert cleared.json()["session"]["fillLevel"] == 0.0


def test_theme_and_draft(client: TestClient) -> None:
    session_id = open_session(client)

    assert client.post(f"/sessions/{session_id}/draft", json={"name": "Tom"}).status_code == 400

    theme = client.put(f"/sessions/{session_id}/theme", json={"name": "berry"})
    assert theme.status_code == 200
    assert theme.json()["lid"] == "#DDB0D4"
    assert client.put(f"/sessions/{session_id}/theme", json={"name": "plaid"}).status_code == 400

    client.post(f"/sessions/{session_id}/selections", json={"ingredientId": "1"})
    draft = client.post(f"/sessions/{session_id}/draft", json={"name": "Min kopp"})
    assert draft.status_code == 200
    assert draft.json()["name"] == "Min kopp"
    assert draft.json()["basePrice"] == 15.0
    assert draft.json()["theme"]["name"] == "berry"


def test_unknown_session_and_close(client: TestClient) -> None:
    assert client.get("/sessions/nope").status_code == 404
    assert client.post("/sessions/nope/reset").status_code == 404

    session_id = open_session(client)
    assert len(client.get("/sessions").json()["sessions"]) == 1
    assert client.get("/healthz").json()["sessions"] == 1
    assert client.delete(f"/sessions/{session_id}").status_code == 204
    assert client.delete(f"/sessions/{session_id}").status_code == 404
