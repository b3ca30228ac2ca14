from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ...domain.feature import FeatureFlag, FeatureFlagRule
from ...logging_config import get_logger
from ..db import models

logger = get_logger(__name__)


def _rule_to_domain(r: models.FeatureFlagRuleModel) -> FeatureFlagRule:
    return FeatureFlagRule(
        id=r.id,
        feature_flag_id=r.feature_flag_id,
        attribute=r.attribute,
        operator=r.operator,
        value=r.value,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def _flag_to_domain(m: models.FeatureFlagModel) -> FeatureFlag:
    return FeatureFlag(
        id=m.id,
        name=m.name,
        description=m.description or "",
        enabled=bool(m.enabled),
        percentage=int(m.percentage),
        rules=tuple(_rule_to_domain(r) for r in m.rules),
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


class SqlAlchemyFeatureFlagRepository:
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    def _select_flags(self):
        return (
            select(models.FeatureFlagModel)
            .options(selectinload(models.FeatureFlagModel.rules))
            .execution_options(populate_existing=True)
        )

    async def _commit(self, operation: str, **context: Any) -> None:
        try:
            await self.db_session.commit()
        except Exception as e:
            logger.debug(f"{operation}_commit_failed", extra={**context, "error": str(e)})
            await self.db_session.rollback()
            raise

    async def list_flags(self) -> List[FeatureFlag]:
        q = await self.db_session.execute(
            self._select_flags().order_by(models.FeatureFlagModel.name)
        )
        return [_flag_to_domain(m) for m in q.scalars().all()]

    async def get_by_id(self, flag_id: str) -> Optional[FeatureFlag]:
        q = await self.db_session.execute(
            self._select_flags().where(models.FeatureFlagModel.id == flag_id)
        )
        row = q.scalars().first()
        return _flag_to_domain(row) if row else None

    async def get_by_name(self, name: str) -> Optional[FeatureFlag]:
        q = await self.db_session.execute(
            self._select_flags().where(models.FeatureFlagModel.name == name)
        )
        row = q.scalars().first()
        return _flag_to_domain(row) if row else None

    async def upsert(
        self,
        name: str,
        description: Optional[str] = None,
        enabled: bool = True,
        percentage: int = 100,
    ) -> FeatureFlag:
        q = await self.db_session.execute(
            select(models.FeatureFlagModel).where(models.FeatureFlagModel.name == name)
        )
        m = q.scalars().first()
        if m is None:
            m = models.FeatureFlagModel(
                name=name,
                description=description or "",
                enabled=bool(enabled),
                percentage=int(percentage),
            )
            self.db_session.add(m)
        else:
            # description is only replaced when the caller supplies one
            if description is not None:
                m.description = description
            m.enabled = bool(enabled)
            m.percentage = int(percentage)
            m.updated_at = datetime.utcnow()
        await self.db_session.flush()
        flag_id = m.id
        await self._commit("feature_upsert", name=name)
        result = await self.get_by_id(flag_id)
        assert result is not None  # row was written in this session
        return result

    async def add_rule(
        self, flag_id: str, attribute: str, operator: str, value: str
    ) -> Optional[FeatureFlagRule]:
        exists = await self.db_session.execute(
            select(models.FeatureFlagModel.id).where(models.FeatureFlagModel.id == flag_id)
        )
        if exists.scalar_one_or_none() is None:
            return None
        r = models.FeatureFlagRuleModel(
            feature_flag_id=flag_id,
            attribute=attribute,
            operator=operator,
            value=value,
        )
        self.db_session.add(r)
        await self.db_session.flush()
        rule = _rule_to_domain(r)
        await self._commit("feature_add_rule", flag_id=flag_id)
        return rule

    async def delete(self, flag_id: str) -> bool:
        # rules first so the foreign key never dangles
        await self.db_session.execute(
            delete(models.FeatureFlagRuleModel).where(
                models.FeatureFlagRuleModel.feature_flag_id == flag_id
            )
        )
        res = await self.db_session.execute(
            delete(models.FeatureFlagModel).where(models.FeatureFlagModel.id == flag_id)
        )
        if not res.rowcount:
            await self.db_session.rollback()
            return False
        await self._commit("feature_delete", flag_id=flag_id)
        return True


class SessionFeatureFlagSource:
    """FlagSource that opens a fresh DB session for every snapshot read."""

    def __init__(self, session_factory: Any):
        self.session_factory = session_factory

    async def list_flags(self) -> List[FeatureFlag]:
        async with self.session_factory() as db_session:
            return await SqlAlchemyFeatureFlagRepository(db_session).list_flags()
