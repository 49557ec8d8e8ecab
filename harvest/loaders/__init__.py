from harvest.loaders.postgres_loader import PostgresLoader, build_columns, check_cardinality

__all__ = ["PostgresLoader", "build_columns", "check_cardinality"]
