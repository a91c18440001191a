# controller/lead_controller.py
from fastapi import APIRouter, Depends, status
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from controller.controller_dependencies import get_lead_service
from model.api import (
    FindLeadsRequest,
    FindLeadsResponse,
    SearchSimilarRequest,
    SearchSimilarResponse,
)
from service.lead_service import LeadService
from util.constants import InternalURIs

rate_limiter = RateLimiter(
    times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
)

lead_router = APIRouter(dependencies=[Depends(rate_limiter)])


@lead_router.post(
    InternalURIs.FIND_LEADS,
    response_model=FindLeadsResponse,
    status_code=status.HTTP_200_OK,
)
async def find_leads(
    payload: FindLeadsRequest,
    service: LeadService = Depends(get_lead_service),
) -> FindLeadsResponse:
    return await service.find_leads(payload)


@lead_router.post(
    InternalURIs.SEARCH_SIMILAR,
    response_model=SearchSimilarResponse,
    status_code=status.HTTP_200_OK,
)
async def search_similar(
    payload: SearchSimilarRequest,
    service: LeadService = Depends(get_lead_service),
) -> SearchSimilarResponse:
    return await service.search_similar(payload)
