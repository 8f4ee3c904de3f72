from .sql_provider import QueryProvider, QuerySelector, SqlFileQueryProvider

__all__ = ["QueryProvider", "QuerySelector", "SqlFileQueryProvider"]
