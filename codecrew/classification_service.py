"""
Classification service.

Read-only access to the Domain -> Subdomain -> Category -> TechStack ->
Language -> Topic tree, and the mapping from a classification type name to
the Problem column that references it.
"""

import logging
from typing import Dict, List

from sqlalchemy.orm import Session

from .db_models import (
    DBDomain, DBSubdomain, DBCategory, DBTechStack, DBLanguage, DBTopic, DBProblem
)
from .exceptions import InvalidClassificationTypeError
from .models import ClassificationType

logger = logging.getLogger(__name__)

# Problem column referencing each classification level
PROBLEM_COLUMN_BY_TYPE = {
    ClassificationType.DOMAIN.value: DBProblem.domain_id,
    ClassificationType.SUBDOMAIN.value: DBProblem.subdomain_id,
    ClassificationType.CATEGORY.value: DBProblem.category_id,
    ClassificationType.TECHSTACK.value: DBProblem.tech_stack_id,
    ClassificationType.LANGUAGE.value: DBProblem.language_id,
    ClassificationType.TOPIC.value: DBProblem.topic_id,
}


def problem_column_for(type_name: str):
    """Resolve a classification type name to its Problem column, or raise 400."""
    column = PROBLEM_COLUMN_BY_TYPE.get(type_name)
    if column is None:
        raise InvalidClassificationTypeError(type_name)
    return column


class ClassificationService:
    """Browse the classification tree."""

    def __init__(self, db: Session):
        self.db = db

    def list_domains(self) -> List[DBDomain]:
        return self.db.query(DBDomain).order_by(DBDomain.name).all()

    def list_subdomains(self, domain_id: str) -> List[DBSubdomain]:
        return self.db.query(DBSubdomain).filter(
            DBSubdomain.domain_id == domain_id
        ).order_by(DBSubdomain.name).all()

    def list_categories(self, subdomain_id: str) -> List[DBCategory]:
        return self.db.query(DBCategory).filter(
            DBCategory.subdomain_id == subdomain_id
        ).order_by(DBCategory.name).all()

    def list_tech_stacks(self, category_id: str) -> List[DBTechStack]:
        return self.db.query(DBTechStack).filter(
            DBTechStack.category_id == category_id
        ).order_by(DBTechStack.name).all()

    def list_languages(self, tech_stack_id: str) -> List[DBLanguage]:
        return self.db.query(DBLanguage).filter(
            DBLanguage.tech_stack_id == tech_stack_id
        ).order_by(DBLanguage.name).all()

    def list_topics(self, language_id: str) -> List[DBTopic]:
        return self.db.query(DBTopic).filter(
            DBTopic.language_id == language_id
        ).order_by(DBTopic.name).all()

    def get_hierarchy(self) -> Dict[str, list]:
        """Every level of the tree, each sorted by name."""
        return {
            "domains": self.list_domains(),
            "subdomains": self.db.query(DBSubdomain).order_by(DBSubdomain.name).all(),
            "categories": self.db.query(DBCategory).order_by(DBCategory.name).all(),
            "tech_stacks": self.db.query(DBTechStack).order_by(DBTechStack.name).all(),
            "languages": self.db.query(DBLanguage).order_by(DBLanguage.name).all(),
            "topics": self.db.query(DBTopic).order_by(DBTopic.name).all(),
        }

    def missing_domain_ids(self, domain_ids: List[str]) -> List[str]:
        """Return the ids in `domain_ids` that do not exist."""
        if not domain_ids:
            return []
        found = {
            row.id for row in self.db.query(DBDomain.id).filter(DBDomain.id.in_(domain_ids)).all()
        }
        return [domain_id for domain_id in domain_ids if domain_id not in found]
