"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Thu Feb 05 2026
# SPDX-License-Identifier: MIT
"""

import enum
from typing import Any, Dict

from sqlalchemy.orm import Session


class TransitionOutcome(str, enum.Enum):
    APPLIED = "applied"
    NOT_AVAILABLE = "not_available"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


def _apply_expectations(query, model, expected: Dict[str, Any]):
    for column, value in expected.items():
        attr = getattr(model, column)
        if value is None:
            query = query.filter(attr.is_(None))
        elif isinstance(value, (list, tuple, set, frozenset)):
            query = query.filter(attr.in_(list(value)))
        else:
            query = query.filter(attr == value)
    return query


def conditional_update(
    db: Session, model, record_id: int, expected: Dict[str, Any], values: Dict[str, Any]
) -> TransitionOutcome:
    """
    Compare-and-swap on a single row: UPDATE ... SET values WHERE id = record_id AND
    every column in `expected` holds its expected value (None means IS NULL, a sequence
    means IN). The affected-row count tells a lost race apart from success.
    """
    query = _apply_expectations(db.query(model).filter(model.id == record_id), model, expected)
    updated = query.update(values, synchronize_session=False)
    db.commit()
    if updated:
        return TransitionOutcome.APPLIED
    if db.query(model.id).filter(model.id == record_id).first() is None:
        return TransitionOutcome.NOT_FOUND
    return TransitionOutcome.NOT_AVAILABLE


def conditional_delete(db: Session, model, record_id: int, expected: Dict[str, Any]) -> TransitionOutcome:
    query = _apply_expectations(db.query(model).filter(model.id == record_id), model, expected)
    deleted = query.delete(synchronize_session=False)
    db.commit()
    if deleted:
        return TransitionOutcome.APPLIED
    if db.query(model.id).filter(model.id == record_id).first() is None:
        return TransitionOutcome.NOT_FOUND
    return TransitionOutcome.NOT_AVAILABLE
