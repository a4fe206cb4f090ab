"""Role-based learning management backend."""
