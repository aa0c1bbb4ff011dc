"""Vehicle class for fleet identification."""

from typing import Optional


class Vehicle:
    """A shared vehicle in the fleet pool."""

    def __init__(
        self,
        id: Optional[str],
        plate: str,
        model: str,
        disabled: bool = False,
        checklist_id: Optional[str] = None,
    ):
        self.id = id
        self.plate = plate
        self.model = model
        self.disabled = disabled or False
        self.checklist_id = checklist_id

    @property
    def name(self) -> str:
        """Human-readable vehicle name."""
        return f"{self.model} - {self.plate}"
