"""Permit application endpoints - create, read, admin update and documents."""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field

from permitflow.api.deps import get_service
from permitflow.api.rendering import build_next_steps, render_comment
from permitflow.engine.requirements import resolve_required_documents
from permitflow.engine.service import PermitService
from permitflow.models.application import ApplicantInfo, Application, Document, FileMeta
from permitflow.models.commands import (
    AppendNote,
    AssignTo,
    SetEstimatedValue,
    SetStatus,
    UpdateCommand,
)
from permitflow.models.common import (
    AnalysisStatus,
    ApplicationStatus,
    CamelModel,
    CommentKind,
    DocumentCategory,
    PermitType,
    ProjectType,
)

router = APIRouter(tags=["applications"])


class CommentView(CamelModel):
    """Comment with rendered message."""

    timestamp: datetime
    kind: CommentKind
    message: str
    payload: dict[str, Any] = Field(default_factory=dict)


class ApplicationView(Application):
    """Application as returned to callers."""

    comments: list[CommentView] = Field(default_factory=list)  # type: ignore[assignment]

    @classmethod
    def from_application(cls, application: Application) -> "ApplicationView":
        """Render comments for display."""
        data = application.model_dump()
        data["comments"] = [
            CommentView(
                timestamp=c.timestamp,
                kind=c.kind,
                message=render_comment(c),
                payload=c.payload,
            )
            for c in application.comments
        ]
        return cls.model_validate(data)


class CreateApplicationResponse(CamelModel):
    """Response for POST /permit-applications."""

    application_id: str
    application: ApplicationView
    required_documents: list[DocumentCategory]
    next_steps: list[str]


class ApplicationResponse(CamelModel):
    """Response for GET /permit-applications/{application_id}."""

    application: ApplicationView
    next_steps: list[str]


class ApplicationListResponse(CamelModel):
    """Response for GET /permit-applications."""

    applications: list[ApplicationView]


class UpdateApplicationRequest(CamelModel):
    """Request body for PATCH /permit-applications/{application_id}.

    Only ``status`` affects the state machine; the rest is CRM metadata.
    """

    status: ApplicationStatus | None = None
    notes: list[str] = Field(default_factory=list)
    assigned_to: str | None = Field(None, min_length=1)
    estimated_value: float | None = Field(None, ge=0)

    def to_commands(self) -> list[UpdateCommand]:
        """Translate the field bag into explicit commands."""
        commands: list[UpdateCommand] = [AppendNote(text=note) for note in self.notes if note.strip()]
        if self.assigned_to is not None:
            commands.append(AssignTo(assignee=self.assigned_to))
        if self.estimated_value is not None:
            commands.append(SetEstimatedValue(value=self.estimated_value))
        if self.status is not None:
            commands.append(SetStatus(status=self.status))
        return commands


class SubmitDocumentRequest(FileMeta):
    """Request body for POST /permit-applications/{application_id}/documents."""

    category: str = Field(..., min_length=1)


class RejectDocumentRequest(CamelModel):
    """Request body for the administrative reject action."""

    reason: str = Field(..., min_length=1, max_length=2000)


class DocumentResponse(CamelModel):
    """Response for document submission, resubmission and rejection."""

    document_id: str
    analysis_status: AnalysisStatus
    document: Document


class RequiredDocumentsResponse(CamelModel):
    """Response for GET /required-documents."""

    permit_type: PermitType
    project_type: ProjectType
    required_documents: list[DocumentCategory]


def _document_response(document: Document) -> DocumentResponse:
    return DocumentResponse(
        document_id=document.id,
        analysis_status=document.analysis_status,
        document=document,
    )


@router.post(
    "/permit-applications",
    response_model=CreateApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_application(
    request: ApplicantInfo,
    service: Annotated[PermitService, Depends(get_service)],
) -> CreateApplicationResponse:
    """Create a permit application and list the documents it needs.

    Args:
        request: Applicant and project fields
        service: Permit service

    Returns:
        New application id, the application, required documents and next steps
    """
    application = await service.create_application(request)

    return CreateApplicationResponse(
        application_id=application.id,
        application=ApplicationView.from_application(application),
        required_documents=application.required_documents,
        next_steps=build_next_steps(application),
    )


@router.get("/permit-applications", response_model=ApplicationListResponse)
async def list_applications(
    service: Annotated[PermitService, Depends(get_service)],
) -> ApplicationListResponse:
    """List all applications in creation order (administrative)."""
    applications = await service.list_applications()
    return ApplicationListResponse(
        applications=[ApplicationView.from_application(a) for a in applications]
    )


@router.get("/permit-applications/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: str,
    service: Annotated[PermitService, Depends(get_service)],
) -> ApplicationResponse:
    """Get an application with freshly derived next steps."""
    application = await service.get_application(application_id)

    return ApplicationResponse(
        application=ApplicationView.from_application(application),
        next_steps=build_next_steps(application),
    )


@router.patch("/permit-applications/{application_id}", response_model=ApplicationResponse)
async def update_application(
    application_id: str,
    request: UpdateApplicationRequest,
    service: Annotated[PermitService, Depends(get_service)],
) -> ApplicationResponse:
    """Record a decision or CRM metadata (administrative).

    Returns 409 when the requested status is not allowed in the current state.
    """
    application = await service.update_application(application_id, request.to_commands())

    return ApplicationResponse(
        application=ApplicationView.from_application(application),
        next_steps=build_next_steps(application),
    )


@router.post(
    "/permit-applications/{application_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_document(
    application_id: str,
    request: SubmitDocumentRequest,
    service: Annotated[PermitService, Depends(get_service)],
) -> DocumentResponse:
    """Submit a document; analysis starts in the background."""
    file_meta = FileMeta(
        file_name=request.file_name,
        mime_type=request.mime_type,
        size_bytes=request.size_bytes,
    )
    document = await service.submit_document(application_id, request.category, file_meta)
    return _document_response(document)


@router.put(
    "/permit-applications/{application_id}/documents/{document_id}",
    response_model=DocumentResponse,
)
async def resubmit_document(
    application_id: str,
    document_id: str,
    request: FileMeta,
    service: Annotated[PermitService, Depends(get_service)],
) -> DocumentResponse:
    """Replace a document's file and re-run analysis."""
    document = await service.resubmit_document(application_id, document_id, request)
    return _document_response(document)


@router.post(
    "/permit-applications/{application_id}/documents/{document_id}/reject",
    response_model=DocumentResponse,
)
async def reject_document(
    application_id: str,
    document_id: str,
    request: RejectDocumentRequest,
    service: Annotated[PermitService, Depends(get_service)],
) -> DocumentResponse:
    """Reject a document outright (administrative)."""
    document = await service.reject_document(application_id, document_id, request.reason)
    return _document_response(document)


@router.get("/required-documents", response_model=RequiredDocumentsResponse)
async def required_documents(
    permit_type: Annotated[PermitType, Query(alias="permitType")],
    project_type: Annotated[ProjectType, Query(alias="projectType")],
) -> RequiredDocumentsResponse:
    """Preview the documents an application of this kind will need."""
    return RequiredDocumentsResponse(
        permit_type=permit_type,
        project_type=project_type,
        required_documents=list(resolve_required_documents(permit_type, project_type)),
    )
