"""Requirement resolver - which documents a permit application needs."""

from permitflow.models.common import DocumentCategory, PermitType, ProjectType

_PROJECT_REQUIREMENTS: dict[str, tuple[DocumentCategory, ...]] = {
    ProjectType.residential.value: (
        DocumentCategory.property_deed,
        DocumentCategory.homeowner_id,
    ),
    ProjectType.commercial.value: (
        DocumentCategory.property_deed,
        DocumentCategory.contractor_license,
    ),
}

_PERMIT_REQUIREMENTS: dict[str, tuple[DocumentCategory, ...]] = {
    PermitType.building.value: (
        DocumentCategory.architectural_drawing,
        DocumentCategory.site_plan,
        DocumentCategory.structural_plans,
    ),
    PermitType.electrical.value: (
        DocumentCategory.electrical_plans,
        DocumentCategory.site_plan,
    ),
    PermitType.plumbing.value: (
        DocumentCategory.plumbing_plans,
        DocumentCategory.site_plan,
    ),
    PermitType.mechanical.value: (
        DocumentCategory.mechanical_plans,
        DocumentCategory.site_plan,
    ),
    PermitType.demolition.value: (
        DocumentCategory.site_plan,
        DocumentCategory.property_survey,
    ),
    PermitType.zoning.value: (
        DocumentCategory.plot_plan,
        DocumentCategory.property_survey,
    ),
}

_DEFAULT_PERMIT_REQUIREMENTS: tuple[DocumentCategory, ...] = (DocumentCategory.site_plan,)


def _key(value: PermitType | ProjectType | str) -> str:
    return value.value if isinstance(value, PermitType | ProjectType) else str(value)


def resolve_required_documents(
    permit_type: PermitType | str, project_type: ProjectType | str
) -> tuple[DocumentCategory, ...]:
    """Resolve the ordered, de-duplicated set of required document categories.

    The application form always comes first, followed by ownership/identity
    documents for the project type and technical plans for the permit type.
    Unrecognized permit types fall back to a site plan; unrecognized project
    types add nothing.

    Args:
        permit_type: Permit being applied for
        project_type: Kind of project

    Returns:
        Non-empty tuple of categories
    """
    required: list[DocumentCategory] = [DocumentCategory.application_form]
    required.extend(_PROJECT_REQUIREMENTS.get(_key(project_type), ()))
    required.extend(_PERMIT_REQUIREMENTS.get(_key(permit_type), _DEFAULT_PERMIT_REQUIREMENTS))

    # dict preserves first-seen order
    return tuple(dict.fromkeys(required))
