"""Domain-level types shared by services, entities and API models."""
