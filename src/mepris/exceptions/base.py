from __future__ import annotations


class MeprisError(Exception):
    """Base exception class for all Mepris-specific errors.

    This is the root of the Mepris exception hierarchy. Catching it at the CLI
    boundary covers every configuration, validation, execution and resume
    failure while letting system exceptions propagate naturally.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            await executor.execute(plan)
        except MeprisError as e:
            click.echo(f"Error: {e.message}", err=True)
            sys.exit(1)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the MeprisError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
