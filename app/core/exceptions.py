class PersistenceError(Exception):
    """Raised by the DynamoDB layer when a table operation fails."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"{operation} failed: {message}")
