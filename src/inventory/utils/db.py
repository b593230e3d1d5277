from protean.domain import Domain
from sqlalchemy import create_engine

_RDBMS_PROVIDERS = ("sqlite", "postgresql")


def _register_tables(domain: Domain, provider_name: str) -> None:
    # Accessing ``_dao`` builds the SQLAlchemy model, which registers its
    # table with the provider's metadata.
    for records in (domain.registry.aggregates, domain.registry.entities):
        for _, record in records.items():
            if record.cls.meta_.provider == provider_name:
                domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain):
    """Create the product, variant and history tables if they are missing."""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in _RDBMS_PROVIDERS:
                _register_tables(domain, provider.name)
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.create_all(engine)
                engine.dispose()

