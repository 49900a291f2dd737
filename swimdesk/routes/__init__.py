"""HTTP routers for SwimDesk."""
