"""Repository adapters package: explicit public exports.

Call `get_repositories(db_session)` to obtain repository instances.
"""


def get_repositories(db_session):
    """Return a simple container of repository instances wired to the given db_session."""
    # import concrete implementations lazily so callers obtain repositories
    # only via the factory API (get_repositories) rather than top-level imports
    from .feature_repository import SqlAlchemyFeatureFlagRepository

    return {
        "feature_flags": SqlAlchemyFeatureFlagRepository(db_session),
    }


__all__ = ["get_repositories"]
