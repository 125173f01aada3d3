"""
Base class for CLI commands.
"""

from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from ..client import CoordinatorClient


class Command(ABC):
    """
    Abstract base class for CLI commands.

    Subclasses declare their metadata as class attributes and are registered
    with the top-level parser in ``cli.main``.
    """

    name: str = ""
    aliases: ClassVar[list[str]] = []
    description: str = ""

    def __init_subclass__(cls, **kwargs: object) -> None:
        """Validate that required attributes are defined."""
        super().__init_subclass__(**kwargs)
        if not cls.name:
            raise ValueError(f"Command class {cls.__name__} must define a 'name' attribute")
        if not cls.description:
            raise ValueError(f"Command class {cls.__name__} must define a 'description' attribute")

    @abstractmethod
    def add_arguments(self, parser: ArgumentParser) -> None:
        """
        Add command-specific arguments to the argument parser.

        Args:
            parser: The argparse subparser for this command
        """

    @abstractmethod
    def execute(self, args: Namespace, client: "CoordinatorClient") -> int:
        """
        Execute the command with the given arguments.

        Returns:
            Exit code (0 for success, non-zero for error)
        """

    def get_all_names(self) -> list[str]:
        """Get all names (primary + aliases) for this command."""
        return [self.name, *self.aliases]
