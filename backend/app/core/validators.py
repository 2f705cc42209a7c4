"""
Field validation helpers shared by request schemas.
"""
from typing import List, Optional


class IdValidator:
    """
    Validation for catalog and entity IDs in request payloads.
    """

    @staticmethod
    def validate_positive_id(value: int, field_name: str = "ID") -> int:
        """
        Validate that an ID is a positive integer.

        Raises:
            ValueError: If the ID is not positive
        """
        if value <= 0:
            raise ValueError(f"{field_name} must be a positive integer")
        return value

    @staticmethod
    def normalize_id_list(values: Optional[List[int]], field_name: str) -> List[int]:
        """
        Validate a list of IDs and drop duplicates, keeping first-seen order.

        Raises:
            ValueError: If any ID is not positive
        """
        seen: List[int] = []
        for value in values or []:
            IdValidator.validate_positive_id(value, field_name)
            if value not in seen:
                seen.append(value)
        return seen


class TextValidator:
    """
    Text validation utilities for schema field validation.
    """

    @staticmethod
    def validate_non_empty_text(value: str, field_name: str = "Text") -> str:
        """
        Validate that text is not empty or whitespace-only.

        Returns:
            The stripped value if valid

        Raises:
            ValueError: If the text is empty or whitespace-only
        """
        stripped = value.strip()
        if not stripped:
            raise ValueError(f"{field_name} cannot be empty or whitespace-only")
        return stripped
