"""Domain layer: entities, errors and the group formation services."""
