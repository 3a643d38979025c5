from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from common.models.abonent import (
    RegisterAbonentInput,
    UnregisterAbonentInput,
    UpdateAbonentInput,
)

from ..schemas.abonents import (
    AbonentMutationResponse,
    AbonentResponse,
    DeleteGrantResponse,
    ListAbonentsResponse,
    PropagationResponse,
    RegisterAbonentRequest,
    UpdateAbonentRequest,
)
from ...exceptions import (
    AbonentServiceError,
    DuplicateEntryError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationFailureError,
)
from ...services.abonents_service import (
    AbonentMutationResult,
    AbonentsService,
    get_abonents_service,
)


router = APIRouter()


def _to_http_error(exc: AbonentServiceError) -> HTTPException:
    if isinstance(exc, DuplicateEntryError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (ReferentialIntegrityError, ValidationFailureError)):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
    )


def _mutation_response(result: AbonentMutationResult) -> AbonentMutationResponse:
    return AbonentMutationResponse(
        abonent=AbonentResponse.from_domain(result.abonent),
        propagation_errors=list(result.propagation.errors),
        item_errors=list(result.propagation.item_errors),
    )


@router.get("", response_model=ListAbonentsResponse, summary="회사별 입주자 목록 조회")
async def list_abonents(
    company_id: str = Query(..., min_length=1, description="서비스 회사 id"),
    service: AbonentsService = Depends(get_abonents_service),
) -> ListAbonentsResponse:
    items = await service.list_abonents(company_id)
    return ListAbonentsResponse(
        total=len(items),
        items=[AbonentResponse.from_domain(item) for item in items],
    )


@router.post(
    "",
    response_model=AbonentMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="입주자 등록",
)
async def register_abonent(
    body: RegisterAbonentRequest,
    service: AbonentsService = Depends(get_abonents_service),
) -> AbonentMutationResponse:
    input_model = RegisterAbonentInput(
        **body.model_dump(exclude={"perimeters"}),
        perimeters=[grant.to_domain() for grant in body.perimeters],
    )
    try:
        result = await service.register(input_model)
    except AbonentServiceError as exc:
        raise _to_http_error(exc) from exc
    return _mutation_response(result)


@router.put(
    "/{abonent_id}",
    response_model=AbonentMutationResponse,
    summary="입주자 수정",
    description="원하는 최종 상태를 받아 기존 상태와의 차이만 전파한다.",
)
async def update_abonent(
    abonent_id: str,
    body: UpdateAbonentRequest,
    service: AbonentsService = Depends(get_abonents_service),
) -> AbonentMutationResponse:
    input_model = UpdateAbonentInput(
        abonent_id=abonent_id,
        **body.model_dump(exclude={"perimeters"}),
        perimeters=[grant.to_domain() for grant in body.perimeters],
    )
    try:
        result = await service.update(input_model)
    except AbonentServiceError as exc:
        raise _to_http_error(exc) from exc
    return _mutation_response(result)


@router.delete(
    "/{abonent_id}", response_model=PropagationResponse, summary="입주자 삭제"
)
async def unregister_abonent(
    abonent_id: str,
    company_id: str = Query(..., min_length=1),
    service: AbonentsService = Depends(get_abonents_service),
) -> PropagationResponse:
    try:
        result = await service.unregister(
            UnregisterAbonentInput(abonent_id=abonent_id, company_id=company_id)
        )
    except AbonentServiceError as exc:
        raise _to_http_error(exc) from exc
    return PropagationResponse.from_result(result)


@router.delete(
    "/users/{user_id}/temporary-perimeters/{perimeter_id}",
    response_model=DeleteGrantResponse,
    summary="임시 권한 삭제 (soft-delete)",
)
async def delete_temporary_perimeter(
    user_id: str,
    perimeter_id: str,
    company_id: str = Query(..., min_length=1),
    service: AbonentsService = Depends(get_abonents_service),
) -> DeleteGrantResponse:
    try:
        deleted = await service.delete_temporary_grant(user_id, company_id, perimeter_id)
    except AbonentServiceError as exc:
        raise _to_http_error(exc) from exc
    return DeleteGrantResponse(deleted=deleted)


@router.delete(
    "/users/{user_id}/family-perimeters/{perimeter_id}",
    response_model=DeleteGrantResponse,
    summary="가족 권한 삭제",
)
async def delete_family_perimeter(
    user_id: str,
    perimeter_id: str,
    company_id: str = Query(..., min_length=1),
    service: AbonentsService = Depends(get_abonents_service),
) -> DeleteGrantResponse:
    try:
        deleted = await service.delete_family_grant(user_id, company_id, perimeter_id)
    except AbonentServiceError as exc:
        raise _to_http_error(exc) from exc
    return DeleteGrantResponse(deleted=deleted)
