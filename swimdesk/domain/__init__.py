"""Pure business rules with no storage or framework dependencies."""
