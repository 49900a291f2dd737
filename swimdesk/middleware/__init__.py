"""HTTP middleware for SwimDesk."""
