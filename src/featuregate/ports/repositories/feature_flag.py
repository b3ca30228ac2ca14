from typing import List, Optional, Protocol

from ...domain.feature import FeatureFlag, FeatureFlagRule


class FeatureFlagRepository(Protocol):
    """Protocol for feature flag repository operations."""

    async def list_flags(self) -> List[FeatureFlag]: ...

    async def get_by_id(self, flag_id: str) -> Optional[FeatureFlag]: ...
    async def get_by_name(self, name: str) -> Optional[FeatureFlag]: ...

    async def upsert(
        self,
        name: str,
        description: Optional[str] = None,
        enabled: bool = True,
        percentage: int = 100,
    ) -> FeatureFlag: ...

    async def add_rule(
        self, flag_id: str, attribute: str, operator: str, value: str
    ) -> Optional[FeatureFlagRule]: ...

    async def delete(self, flag_id: str) -> bool: ...


class FlagSource(Protocol):
    """Read side consumed by the flag cache: every flag with its rules."""

    async def list_flags(self) -> List[FeatureFlag]: ...
