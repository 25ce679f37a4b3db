"""Tests for the design item endpoints with persistence mocked out."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from design_manager.core.exceptions import ConcurrentModificationError, DesignItemNotFoundError
from design_manager.core.rag import Aspects
from design_manager.core.stage_tracks import DesignStage
from design_manager.main import app
from tests.fixtures_design_items import (
    ACTOR,
    AMBER,
    GREEN,
    ITEM_ID,
    PROJECT_ID,
    RED,
    make_item,
    rag,
)

client = TestClient(app)

BASE = f"/v1/design-items/{ITEM_ID}"


@pytest.fixture
def mock_store():
    """Patch the persistence functions used by the endpoints."""
    with (
        patch("design_manager.api.design_items.load_design_item") as mock_load,
        patch("design_manager.api.design_items.save_design_item") as mock_save,
    ):
        mock_save.side_effect = lambda item, expected_version=None: item
        yield mock_load, mock_save


class TestCreateAndList:
    def test_create(self):
        with patch("design_manager.api.design_items.insert_design_item") as mock_insert:
            mock_insert.side_effect = lambda item: item
            response = client.post(
                "/v1/design-items",
                json={"name": "Walnut sideboard", "created_by": ACTOR, "item_code": "DF-001-001"},
            )

        assert response.status_code == 201
        data = response.json()
        assert data["current_stage"] == "concept"
        assert data["sourcing_type"] == "MANUFACTURED"
        assert data["overall_readiness"] == 0
        assert data["stage_history"] == []
        assert data["rag_status"]["quality_gates"]["client_approval"]["status"] == "red"

    def test_create_with_legacy_sourcing_type(self):
        with patch("design_manager.api.design_items.insert_design_item") as mock_insert:
            mock_insert.side_effect = lambda item: item
            response = client.post(
                "/v1/design-items",
                json={"name": "Lobby", "created_by": ACTOR, "sourcing_type": "ARCHITECTURAL"},
            )

        assert response.status_code == 201
        assert response.json()["current_stage"] == "arch-brief"

    def test_create_unknown_sourcing_type(self):
        with patch("design_manager.api.design_items.insert_design_item") as mock_insert:
            response = client.post(
                "/v1/design-items",
                json={"name": "Lamp", "created_by": ACTOR, "sourcing_type": "3D_PRINTED"},
            )

        assert response.status_code == 400
        mock_insert.assert_not_called()

    def test_list(self):
        row = make_item(current_stage=DesignStage.TECHNICAL).to_row()
        with patch("design_manager.api.design_items.list_design_items") as mock_list:
            mock_list.return_value = [row]
            response = client.get(
                "/v1/design-items", params={"project_id": str(PROJECT_ID), "stage": "technical"}
            )

        assert response.status_code == 200
        assert [d["id"] for d in response.json()] == [str(ITEM_ID)]
        mock_list.assert_called_once_with(PROJECT_ID, DesignStage.TECHNICAL)


class TestReads:
    def test_get_missing(self, mock_store):
        mock_load, _ = mock_store
        mock_load.side_effect = DesignItemNotFoundError(ITEM_ID)

        response = client.get(BASE)

        assert response.status_code == 404

    def test_readiness(self, mock_store):
        mock_load, _ = mock_store
        mock_load.return_value = make_item(rag_status=rag(GREEN, client_approval=AMBER))

        response = client.get(f"{BASE}/readiness")

        assert response.status_code == 200
        data = response.json()
        assert data["overall_readiness"] == 97
        assert data["band"] == "green"
        assert data["worst_status"] == "amber"
        assert data["category_readiness"]["design_completeness"] == 100
        assert data["status_counts"]["amber"] == 1

    def test_stages(self, mock_store):
        mock_load, _ = mock_store
        mock_load.return_value = make_item(current_stage=DesignStage.PRELIMINARY)

        response = client.get(f"{BASE}/stages")

        assert response.status_code == 200
        data = response.json()
        assert data["next_stage"] == "technical"
        assert [s["position"] for s in data["stages"]] == [
            "completed",
            "current",
            "pending",
            "pending",
            "pending",
        ]


class TestGateCheck:
    def test_defaults_to_next_stage(self, mock_store):
        mock_load, _ = mock_store
        mock_load.return_value = make_item(rag_status=rag(RED))

        response = client.get(f"{BASE}/gate-check")

        assert response.status_code == 200
        data = response.json()
        assert data["target_stage"] == "preliminary"
        assert data["can_advance"] is False
        assert data["failures"] == [
            "Overall Dimensions must be amber or green (currently red)",
            "Overall readiness 0% is below the 20% minimum",
        ]

    def test_explicit_target(self, mock_store):
        mock_load, _ = mock_store
        mock_load.return_value = make_item(
            rag_status=rag(GREEN, client_approval=AMBER), current_stage=DesignStage.PRE_PRODUCTION
        )

        response = client.get(f"{BASE}/gate-check", params={"target_stage": "production-ready"})

        assert response.json()["failures"] == ["ALL must be green (currently amber)"]

    def test_final_stage(self, mock_store):
        mock_load, _ = mock_store
        mock_load.return_value = make_item(current_stage=DesignStage.PRODUCTION_READY)

        assert client.get(f"{BASE}/gate-check").status_code == 400

    def test_off_track_target(self, mock_store):
        mock_load, _ = mock_store
        mock_load.return_value = make_item()

        response = client.get(f"{BASE}/gate-check", params={"target_stage": "procure-order"})

        assert response.status_code == 400


class TestRagUpdate:
    def test_update(self, mock_store):
        mock_load, mock_save = mock_store
        mock_load.return_value = make_item(rag_status=rag(RED))

        response = client.patch(
            f"{BASE}/rag",
            json={
                "aspect": "design_completeness.model_3d",
                "status": "green",
                "notes": "Signed off",
                "updated_by": ACTOR,
                "expected_version": 0,
            },
        )

        assert response.status_code == 200
        assert response.json()["overall_readiness"] == 5
        saved_item, expected_version = mock_save.call_args[0]
        assert saved_item.rag_status.get(Aspects.MODEL_3D).notes == "Signed off"
        assert expected_version == 0

    def test_unknown_aspect(self, mock_store):
        mock_load, mock_save = mock_store
        mock_load.return_value = make_item()

        response = client.patch(
            f"{BASE}/rag",
            json={"aspect": "design_completeness.veneer", "status": "green", "updated_by": ACTOR},
        )

        assert response.status_code == 400
        mock_save.assert_not_called()

    def test_invalid_status(self, mock_store):
        mock_load, _ = mock_store
        mock_load.return_value = make_item()

        response = client.patch(
            f"{BASE}/rag",
            json={"aspect": "design_completeness.model_3d", "status": "purple", "updated_by": ACTOR},
        )

        assert response.status_code == 422


class TestTransitions:
    def test_transition(self, mock_store):
        mock_load, _ = mock_store
        mock_load.return_value = make_item(rag_status=rag(GREEN))

        response = client.post(
            f"{BASE}/transition", json={"target_stage": "preliminary", "actor": ACTOR}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["current_stage"] == "preliminary"
        assert data["stage_history"][0]["gate_check_passed"] is True

    def test_blocked(self, mock_store):
        mock_load, mock_save = mock_store
        mock_load.return_value = make_item(
            rag_status=rag(GREEN, client_approval=AMBER), current_stage=DesignStage.PRE_PRODUCTION
        )

        response = client.post(
            f"{BASE}/transition", json={"target_stage": "production-ready", "actor": ACTOR}
        )

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["failures"] == ["ALL must be green (currently amber)"]
        assert detail["warnings"] == []
        mock_save.assert_not_called()

    def test_override_without_note(self, mock_store):
        mock_load, mock_save = mock_store
        mock_load.return_value = make_item(rag_status=rag(RED))

        response = client.post(
            f"{BASE}/transition",
            json={"target_stage": "technical", "actor": ACTOR, "is_override": True},
        )

        assert response.status_code == 400
        mock_save.assert_not_called()

    def test_override(self, mock_store):
        mock_load, _ = mock_store
        mock_load.return_value = make_item(rag_status=rag(RED))

        response = client.post(
            f"{BASE}/transition",
            json={
                "target_stage": "technical",
                "actor": ACTOR,
                "is_override": True,
                "note": "Client accepted the risk",
            },
        )

        assert response.status_code == 200
        record = response.json()["stage_history"][0]
        assert record["is_override"] is True
        assert record["gate_check_passed"] is None

    def test_stale_version(self, mock_store):
        mock_load, mock_save = mock_store
        mock_load.return_value = make_item(rag_status=rag(GREEN))
        mock_save.side_effect = ConcurrentModificationError(ITEM_ID, 0)

        response = client.post(
            f"{BASE}/transition",
            json={"target_stage": "preliminary", "actor": ACTOR, "expected_version": 0},
        )

        assert response.status_code == 409

    def test_revert(self, mock_store):
        mock_load, _ = mock_store
        mock_load.return_value = make_item(current_stage=DesignStage.TECHNICAL)

        response = client.post(
            f"{BASE}/revert",
            json={"target_stage": "concept", "actor": ACTOR, "note": "Brief changed"},
        )

        assert response.status_code == 200
        assert response.json()["stage_history"][0]["is_revert"] is True

    def test_revert_forward_rejected(self, mock_store):
        mock_load, _ = mock_store
        mock_load.return_value = make_item(current_stage=DesignStage.TECHNICAL)

        response = client.post(
            f"{BASE}/revert",
            json={"target_stage": "pre-production", "actor": ACTOR, "note": "Skip ahead"},
        )

        assert response.status_code == 400
