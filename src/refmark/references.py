"""Reference tokens for cross-entity links (#123, !45, @user)."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Referenceable(Protocol):
    """Anything that can produce a stable textual reference token."""

    def to_reference(self) -> str: ...


def cross_project_reference(project: Referenceable, entity: object) -> str:
    """Return the text necessary to reference entity from another project.

    Examples:
        cross_project_reference(project, issue)          # 'namespace1/project1#123'
        cross_project_reference(project, merge_request)  # 'namespace1/project1!345'

    Entities without a reference token yield an empty string.
    """
    if isinstance(entity, Referenceable):
        return f"{project.to_reference()}{entity.to_reference()}"
    return ""
