"""Project-related domain exceptions."""

from .base import DomainException, DuplicateResourceException, NotFoundException


class ProjectNotFoundException(NotFoundException):
    """Raised when a project cannot be found."""

    def __init__(self, project_ref: str):
        super().__init__(
            message=f"Project not found: {project_ref}",
            code="PROJECT_NOT_FOUND",
        )
        self.project_ref = project_ref


class DuplicateNameException(DuplicateResourceException):
    """Raised when an owner already has a project with the same name."""

    def __init__(self, owner_address: str, name: str):
        super().__init__(
            message=f"Project name already used by {owner_address}: {name}",
            code="DUPLICATE_NAME",
        )
        self.owner_address = owner_address
        self.name = name


class ConfigurationConflictException(DomainException):
    """Raised when the persisted native project disagrees with configuration."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="CONFIGURATION_CONFLICT",
        )
