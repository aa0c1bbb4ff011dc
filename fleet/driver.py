"""Driver class for authorized drivers."""
from typing import Optional


class Driver:
    """A staff member authorized to drive fleet vehicles."""

    def __init__(
            self,
            id: Optional[str],
            name: str,
            registration: str,
            department: str = "",
            role: str = "",
            phone: str = "",
    ):
        self.id = id
        self.name = name
        self.registration = registration
        self.department = department
        self.role = role
        self.phone = phone

    def matches(self, term: str) -> bool:
        """Case-insensitive substring search across all fields."""
        term = term.lower()
        fields = [self.name, self.registration, self.department, self.role, self.phone]
        return any(term in (f or "").lower() for f in fields)
