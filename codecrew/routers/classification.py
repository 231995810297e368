"""
Classification Router for the CodeCrew API.

Endpoints:
- GET /api/domains
- GET /api/domains/{domain_id}/subdomains
- GET /api/subdomains/{subdomain_id}/categories
- GET /api/categories/{category_id}/techstacks
- GET /api/techstacks/{tech_stack_id}/languages
- GET /api/languages/{language_id}/topics
- GET /api/hierarchy - Full tree dump
"""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..classification_service import ClassificationService
from ..database import get_db
from ..models import (
    DomainOut, SubdomainOut, CategoryOut, TechStackOut, LanguageOut, TopicOut, HierarchyResponse
)
from ..rate_limits import api_limit

router = APIRouter(
    prefix="/api",
    tags=["classification"],
)


@router.get("/domains", response_model=List[DomainOut])
@api_limit
async def list_domains(request: Request, db: Session = Depends(get_db)):
    return ClassificationService(db).list_domains()


@router.get("/domains/{domain_id}/subdomains", response_model=List[SubdomainOut])
@api_limit
async def list_subdomains(request: Request, domain_id: str, db: Session = Depends(get_db)):
    return ClassificationService(db).list_subdomains(domain_id)


@router.get("/subdomains/{subdomain_id}/categories", response_model=List[CategoryOut])
@api_limit
async def list_categories(request: Request, subdomain_id: str, db: Session = Depends(get_db)):
    return ClassificationService(db).list_categories(subdomain_id)


@router.get("/categories/{category_id}/techstacks", response_model=List[TechStackOut])
@api_limit
async def list_tech_stacks(request: Request, category_id: str, db: Session = Depends(get_db)):
    return ClassificationService(db).list_tech_stacks(category_id)


@router.get("/techstacks/{tech_stack_id}/languages", response_model=List[LanguageOut])
@api_limit
async def list_languages(request: Request, tech_stack_id: str, db: Session = Depends(get_db)):
    return ClassificationService(db).list_languages(tech_stack_id)


@router.get("/languages/{language_id}/topics", response_model=List[TopicOut])
@api_limit
async def list_topics(request: Request, language_id: str, db: Session = Depends(get_db)):
    return ClassificationService(db).list_topics(language_id)


@router.get("/hierarchy", response_model=HierarchyResponse)
@api_limit
async def get_hierarchy(request: Request, db: Session = Depends(get_db)):
    """Every classification level, each sorted by name."""
    return ClassificationService(db).get_hierarchy()
