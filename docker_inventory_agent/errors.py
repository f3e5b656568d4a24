"""Exceptions raised by the inventory agent."""


class InventoryAgentError(Exception):
    """Base class for all agent errors."""


class ConfigurationError(InventoryAgentError):
    """The agent configuration is missing or invalid."""


class EngineUnavailable(InventoryAgentError):
    """The container engine client could not be built or reached."""


class ExportFailure(InventoryAgentError):
    """Exporting a container filesystem failed."""

    def __init__(self, container_id, message):
        super().__init__(f"Error exporting container {container_id}: {message}")
        self.container_id = container_id
