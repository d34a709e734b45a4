class OrgSqlError(Exception):
    """Base exception for org-sql"""

    pass


class SchemaError(OrgSqlError):
    """Raised when a statement references an undeclared table, column or enum value"""

    pass


class TimestampError(OrgSqlError):
    """Raised when a timestamp token cannot be decoded"""

    pass
