"""
Test data factories.

Uses factory pattern to generate consistent test data.
"""

from typing import Any, Optional
from uuid import uuid4

from models.bulk_import import DuplicateAnnotation, ImportRow, ManufacturerAnnotation


class SwitchFactory:
    """
    Factory for creating test switch rows (as stored in the switches table).

    Usage:
        switch = SwitchFactory.create()
        switch = SwitchFactory.create(name="Gateron Yellow", user_id="user-2")
        switches = SwitchFactory.create_batch(5)
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        id: Optional[str] = None,
        name: Optional[str] = None,
        user_id: str = "user-1",
        **fields: Any
    ) -> dict:
        """
        Create a single switch dict.

        Args:
            id: Switch UUID (auto-generated if not provided)
            name: Switch name (auto-generated if not provided)
            user_id: Owning user
            **fields: Any other switch columns

        Returns:
            Switch dict matching database schema
        """
        counter = cls._next_counter()

        return {
            "id": id or str(uuid4()),
            "name": name or f"Test Switch {counter}",
            "user_id": user_id,
            **fields
        }

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list:
        """Create multiple switches."""
        return [cls.create(**overrides) for _ in range(count)]


class ManufacturerFactory:
    """Factory for manufacturers table rows."""

    @classmethod
    def create(
        cls,
        name: str,
        aliases: Optional[list] = None,
        verified: bool = True
    ) -> dict:
        return {
            "id": str(uuid4()),
            "name": name,
            "aliases": aliases or [],
            "verified": verified
        }


class ImportRowFactory:
    """
    Factory for preview rows.

    Usage:
        row = ImportRowFactory.create(name="Cherry MX Red")
        row = ImportRowFactory.create(existing_id="123", overwrite=True)
        row = ImportRowFactory.create(manufacturer="Gatreon", manufacturer_valid=False)
    """

    _counter = 0

    @classmethod
    def create(
        cls,
        name: Optional[str] = None,
        manufacturer: Optional[str] = None,
        manufacturer_valid: Optional[bool] = None,
        existing_id: Optional[str] = None,
        overwrite: bool = False,
        **values: Any
    ) -> ImportRow:
        row_id = cls._counter
        cls._counter += 1

        record = {"name": name or f"Imported Switch {row_id}", **values}
        if manufacturer is not None:
            record["manufacturer"] = manufacturer

        duplicate = DuplicateAnnotation(
            is_duplicate=existing_id is not None,
            existing_id=existing_id,
            overwrite=overwrite
        )

        check = None
        if manufacturer_valid is not None:
            check = ManufacturerAnnotation(manufacturer_valid=manufacturer_valid)

        return ImportRow(
            row_id=row_id,
            source_line=row_id + 1,
            values=record,
            duplicate=duplicate,
            manufacturer_check=check
        )
