"""Design item database operations.

Items are stored one row per item, with ``rag_status`` and ``stage_history``
as JSONB columns, so a save of stage + history + RAG is a single-row update.
Writes are serialized per item by an optimistic ``version`` check.
"""

from typing import Any
from uuid import UUID

from design_manager.core.exceptions import ConcurrentModificationError, DesignItemNotFoundError
from design_manager.core.logging import get_logger
from design_manager.core.schemas_design_items import DesignItem
from design_manager.core.stage_tracks import DesignStage
from design_manager.db.supabase_client import design_items_table

logger = get_logger(__name__)


def get_design_item(item_id: UUID) -> DesignItem | None:
    """
    Get a design item by ID.

    Args:
        item_id: Design item UUID

    Returns:
        DesignItem or None if not found
    """
    try:
        response = (
            design_items_table()
            .select("*")
            .eq("id", str(item_id))
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to get design item {item_id}: {e}")
        raise RuntimeError(f"Supabase error reading design_items: {str(e)}") from e

    return DesignItem.from_row(response.data[0]) if response.data else None


def load_design_item(item_id: UUID) -> DesignItem:
    """
    Get a design item, failing if it does not exist.

    Raises:
        DesignItemNotFoundError: If no row matches
    """
    item = get_design_item(item_id)
    if item is None:
        raise DesignItemNotFoundError(item_id)
    return item


def list_design_items(
    project_id: UUID,
    stage: DesignStage | None = None,
) -> list[dict[str, Any]]:
    """
    List design items for a project, most recently updated first.

    Args:
        project_id: Project UUID
        stage: Optional filter on current stage

    Returns:
        List of design item rows
    """
    try:
        query = design_items_table().select("*").eq("project_id", str(project_id))
        if stage is not None:
            query = query.eq("current_stage", stage.value)
        response = query.order("updated_at", desc=True).execute()
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list design items for project {project_id}: {e}")
        raise RuntimeError(f"Supabase error listing design_items: {str(e)}") from e


def insert_design_item(item: DesignItem) -> DesignItem:
    """
    Insert a newly created design item.

    Args:
        item: Item built by create_design_item

    Returns:
        The stored item
    """
    try:
        response = design_items_table().insert(item.to_row()).execute()
    except Exception as e:
        logger.error(f"Failed to insert design item {item.id}: {e}")
        raise RuntimeError(f"Supabase error inserting design_items: {str(e)}") from e

    if not response.data:
        raise RuntimeError("Failed to insert design item")

    logger.info(f"Created design item {item.id} at stage {item.current_stage.value}")
    return DesignItem.from_row(response.data[0])


def save_design_item(item: DesignItem, expected_version: int | None = None) -> DesignItem:
    """
    Persist an item produced by an engine operation.

    The update only applies if the stored version still equals
    ``expected_version`` (defaults to ``item.version``, the version the item
    was loaded at). The stored version is then incremented.

    Args:
        item: Updated item
        expected_version: Version the caller read before mutating

    Returns:
        The stored item with its new version

    Raises:
        ConcurrentModificationError: If the row changed (or vanished) since it was read
    """
    expected = item.version if expected_version is None else expected_version

    row = item.to_row()
    row["version"] = expected + 1

    try:
        response = (
            design_items_table()
            .update(row)
            .eq("id", str(item.id))
            .eq("version", expected)
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to save design item {item.id}: {e}")
        raise RuntimeError(f"Supabase error updating design_items: {str(e)}") from e

    if not response.data:
        logger.warning(f"Stale write rejected for design item {item.id} at version {expected}")
        raise ConcurrentModificationError(item.id, expected)

    return DesignItem.from_row(response.data[0])
