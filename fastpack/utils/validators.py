"""
==============================================================================
Validation Utilities Module
==============================================================================

Validation classes for scanned codes and operator input.

This module implements:
- ShipmentCodeValidator: Validates decoded shipment codes and parses ids
- CredentialsValidator: Checks login/register form fields

Validation Rules for Shipment Codes:
-----------------------------------
- Length: exactly 11 characters
- Allowed: decimal digits 0-9 only (no signs, spaces or other scripts)
- Leading zeros are significant for the code, not for the numeric id

==============================================================================
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from fastpack.core import exceptions


class ShipmentCodeValidator:
    """
    Validator for shipment codes read from labels.

    Example:
        >>> validator = ShipmentCodeValidator()
        >>> validator.is_valid("12345678901")
        True
        >>> validator.parse_id("02034578901")
        2034578901
    """

    # ASCII digits only; str.isdigit() would also accept superscripts
    PATTERN = re.compile(r"^[0-9]{11}$")

    LENGTH = 11

    def validate(self, code: Optional[str]) -> Tuple[bool, Optional[str]]:
        """
        Validate a shipment code.

        Args:
            code: Extracted barcode value

        Returns:
            Tuple of (is_valid, error_message)
        """
        if code is None or code == "":
            return False, "Code is required"

        if len(code) != self.LENGTH:
            return False, f"Code must be exactly {self.LENGTH} characters"

        if not self.PATTERN.match(code):
            return False, "Code must contain only digits"

        return True, None

    def is_valid(self, code: Optional[str]) -> bool:
        """Quick validation check."""
        is_valid, _ = self.validate(code)
        return is_valid

    def parse_id(self, code: str) -> int:
        """
        Parse a shipment code into the backend identifier.

        Raises:
            AppException: INVALID_IDENTIFIER when the code is not valid
        """
        if not self.is_valid(code):
            raise exceptions.invalid_identifier(code)
        return int(code)


class CredentialsValidator:
    """
    Validator for login and registration forms.

    Only checks presence; the backend decides whether credentials are good.
    """

    LOGIN_REQUIRED = "Email and password are required"
    REGISTER_REQUIRED = "Name, email and password are required"

    def validate_login(self, email: str, password: str) -> Tuple[bool, Optional[str]]:
        """Check that email and password are not blank."""
        if not email or not email.strip() or not password or not password.strip():
            return False, self.LOGIN_REQUIRED
        return True, None

    def validate_register(
        self,
        name: str,
        email: str,
        password: str
    ) -> Tuple[bool, Optional[str]]:
        """Check that name, email and password are not blank."""
        if not name or not name.strip():
            return False, self.REGISTER_REQUIRED
        is_valid, _ = self.validate_login(email, password)
        if not is_valid:
            return False, self.REGISTER_REQUIRED
        return True, None
