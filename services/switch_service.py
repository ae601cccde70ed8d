"""
Switch service for collection persistence used by imports and exports.
"""

from typing import Any, Optional
import structlog

from config import get_supabase_client
from models.switch import ExistingSwitch
from exceptions import SwitchNotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class SwitchService:
    """
    Switch persistence.

    Every query is scoped to the owning user.
    """

    def __init__(self, client=None):
        self.db = client if client is not None else get_supabase_client()
        self.table = "switches"
        self.owner_column = "user_id"

    # ===================
    # READ OPERATIONS
    # ===================

    def list_existing(self, owner_id: str) -> list[ExistingSwitch]:
        """
        Get id and name of every switch the user owns.

        Args:
            owner_id: Owning user ID

        Returns:
            List of ExistingSwitch (for duplicate matching)
        """
        logger.debug("listing_existing_switches", owner_id=owner_id)

        try:
            result = (
                self.db.table(self.table)
                .select("id, name")
                .eq(self.owner_column, owner_id)
                .execute()
            )

            switches = [ExistingSwitch(**row) for row in result.data]

            logger.info(
                "existing_switches_listed",
                owner_id=owner_id,
                count=len(switches)
            )

            return switches

        except Exception as e:
            logger.error(
                "list_existing_switches_failed",
                owner_id=owner_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    def get_all_for_owner(self, owner_id: str) -> list[dict[str, Any]]:
        """
        Get full switch rows for a user, ordered by name.

        Used by the collection export.
        """
        logger.debug("getting_switches_for_owner", owner_id=owner_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq(self.owner_column, owner_id)
                .order("name")
                .execute()
            )
            return list(result.data)

        except Exception as e:
            logger.error(
                "get_switches_for_owner_failed",
                owner_id=owner_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, owner_id: str, fields: dict[str, Any]) -> str:
        """
        Create a switch from normalized import fields.

        Args:
            owner_id: Owning user ID
            fields: Field key -> value (present fields only)

        Returns:
            New switch ID
        """
        logger.debug("creating_switch", owner_id=owner_id, name=fields.get("name"))

        try:
            insert_data = {**fields, self.owner_column: owner_id}

            result = (
                self.db.table(self.table)
                .insert(insert_data)
                .execute()
            )

            switch_id = result.data[0]["id"]

            logger.info(
                "switch_created",
                switch_id=switch_id,
                name=fields.get("name")
            )

            return switch_id

        except Exception as e:
            logger.error(
                "create_switch_failed",
                name=fields.get("name"),
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

    def update(
        self,
        switch_id: str,
        owner_id: str,
        fields: dict[str, Any]
    ) -> Optional[str]:
        """
        Overwrite an existing switch with normalized import fields.

        Only the supplied fields change; absent fields keep their
        stored values.

        Raises:
            SwitchNotFoundError: If the switch doesn't exist for this owner
        """
        logger.debug("updating_switch", switch_id=switch_id)

        try:
            result = (
                self.db.table(self.table)
                .update(dict(fields))
                .eq("id", switch_id)
                .eq(self.owner_column, owner_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "update_switch_failed",
                switch_id=switch_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e))

        if not result.data:
            raise SwitchNotFoundError(switch_id)

        logger.info("switch_updated", switch_id=switch_id)

        return switch_id


# Singleton instance
_switch_service: Optional[SwitchService] = None


def get_switch_service() -> SwitchService:
    """Get or create SwitchService instance."""
    global _switch_service
    if _switch_service is None:
        _switch_service = SwitchService()
    return _switch_service
